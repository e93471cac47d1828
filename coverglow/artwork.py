import logging
from pathlib import Path

import requests
from colorthief import ColorThief

from coverglow.errors import DownloadError
from coverglow.palette import ordered_swatches

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "album-art-"
IMAGE_SUFFIX = ".jpg"
PART_SUFFIX = ".part"

MIN_COLORS = 4
MAX_COLORS = 6
CANDIDATE_COLORS = 10

# Used when the palette can't be read at all, so the gradient always has colors
FALLBACK_COLORS = [
    [255, 0, 0],
    [0, 255, 0],
    [0, 0, 255],
    [255, 255, 0],
]


def pick_image_url(images):
    """Spotify lists the largest image first; fall back to the last entry."""
    if not images:
        return None
    first = images[0] or {}
    if first.get("url"):
        return first["url"]
    last = images[-1] or {}
    return last.get("url")


def image_path_for(cache_dir, track_id) -> Path:
    return Path(cache_dir) / f"{IMAGE_PREFIX}{track_id}{IMAGE_SUFFIX}"


def download_image(url, path, timeout=10):
    path = Path(path)
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise DownloadError(url, message=f"Failed to download image: {e}") from e

    if not response.ok:
        raise DownloadError(url, status=response.status_code)

    tmp = path.with_suffix(path.suffix + PART_SUFFIX)
    try:
        tmp.write_bytes(response.content)
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise DownloadError(url, message=f"Failed to save image: {e}") from e
    return path


def fill_colors(colors):
    colors = [list(c) for c in colors]
    if not colors:
        return [list(c) for c in FALLBACK_COLORS]
    while len(colors) < MIN_COLORS:
        colors = colors + colors
    return colors[:MAX_COLORS]


def extract_colors(image_path):
    try:
        candidates = ColorThief(str(image_path)).get_palette(
            color_count=CANDIDATE_COLORS, quality=5
        )
        colors = ordered_swatches(candidates or [])
    except Exception as e:
        logger.info(f"Error extracting colors: {e}")
        return [list(c) for c in FALLBACK_COLORS]

    if not colors:
        logger.info("No palette colors found, using defaults")
    return fill_colors(colors)


def cleanup_old_images(cache_dir, current_path, keep=2):
    """
    Delete cached album art, keeping the current image plus the most recent
    ``keep - 1`` others. Never raises.
    """
    current_name = Path(current_path).name
    try:
        # leftovers from interrupted downloads
        for part in Path(cache_dir).glob(f"{IMAGE_PREFIX}*{IMAGE_SUFFIX}{PART_SUFFIX}"):
            try:
                part.unlink()
            except OSError:
                pass

        files = []
        for file in Path(cache_dir).glob(f"{IMAGE_PREFIX}*{IMAGE_SUFFIX}"):
            try:
                files.append((file.stat().st_mtime, file))
            except OSError:
                continue
        files.sort(key=lambda item: item[0], reverse=True)

        kept = 1
        for _, file in files:
            if file.name == current_name:
                continue
            if kept < keep:
                kept += 1
                continue
            try:
                file.unlink()
                logger.debug(f"Removed old album art: {file.name}")
            except OSError:
                pass
    except Exception as e:
        logger.debug(f"Error cleaning up old images: {e}")
