import logging

from spotipy.exceptions import SpotifyException

from coverglow.artwork import (
    cleanup_old_images,
    download_image,
    extract_colors,
    image_path_for,
    pick_image_url,
)
from coverglow.errors import AuthorizationDenied
from coverglow.record import build_update

logger = logging.getLogger(__name__)


def fetch_current_track(session):
    """Currently playing track, else the most recently played one, else None."""
    try:
        current = session.call("current_user_playing_track")
        if current and current.get("item"):
            logger.info("Currently playing track detected")
            return current["item"]
    except AuthorizationDenied:
        raise
    except Exception as e:
        logger.info(f"Currently playing lookup failed: {e}")

    try:
        recent = session.call("current_user_recently_played", limit=1)
    except AuthorizationDenied:
        raise
    except Exception as e:
        logger.error(f"Error fetching recently played tracks: {e}")
        return None

    items = (recent or {}).get("items") or []
    if not items or not items[0].get("track"):
        logger.info("No recently played tracks found.")
        return None
    logger.info("Using recently played track")
    return items[0]["track"]


def detect_change(previous_id, track):
    """Return ``(changed, track_id_to_carry_forward)``."""
    track_id = (track or {}).get("id")
    if not track_id:
        return False, previous_id
    if track_id == previous_id:
        return False, previous_id
    return True, track_id


def track_info(track) -> dict:
    return {
        "track": track.get("name", ""),
        "artist": ", ".join(a["name"] for a in track.get("artists", [])),
        "album": (track.get("album") or {}).get("name", ""),
    }


def fetch_audio_features(session, track_id):
    try:
        features = session.call("audio_features", [track_id])
    except AuthorizationDenied:
        raise
    except SpotifyException as e:
        if e.http_status in (403, 404):
            logger.info(f"Audio features not available for this track ({e.http_status}) - using defaults")
        else:
            logger.info(f"Could not fetch audio features: {e}")
        return None
    except Exception as e:
        logger.info(f"Could not fetch audio features: {e}")
        return None

    feature = features[0] if features else None
    if not feature or feature.get("tempo") is None:
        logger.info("Audio features returned null or empty, using defaults")
        return None
    logger.info(f"Audio features: tempo={feature['tempo']:.1f}bpm, energy={feature.get('energy') or 0:.2f}")
    return feature


def poll_once(session, manager, last_track_id, cache_dir):
    """
    Run one polling cycle and return the track id to carry into the next.

    Only a track id different from ``last_track_id`` leads to a publish. Any
    failure along the way is logged and the previous id is kept, so the next
    cycle simply tries again.
    """
    session.begin_cycle()
    try:
        track = fetch_current_track(session)
        changed, track_id = detect_change(last_track_id, track)
        if not track or not track.get("id"):
            logger.info("No valid track found")
            return last_track_id
        if not changed:
            logger.info(f"Same track ({track_id}), skipping update")
            return last_track_id

        if last_track_id is not None:
            logger.info(f"Track changed from {last_track_id} to {track_id}")

        album = track.get("album") or {}
        url = pick_image_url(album.get("images"))
        if not url:
            logger.info("No album art available for this track.")
            return track_id

        info = track_info(track)
        logger.info(f"New track detected: {info['track']} - {info['artist']} ({info['album']})")

        image_path = image_path_for(cache_dir, track_id)
        logger.info("Downloading album art...")
        download_image(url, image_path)

        logger.info("Extracting colors from album art...")
        colors = extract_colors(image_path)
        audio_features = fetch_audio_features(session, track_id)

        logger.info("Updating display...")
        manager.publish(build_update(image_path, colors, info, audio_features))
        cleanup_old_images(cache_dir, image_path, keep=2)
        return track_id
    except AuthorizationDenied:
        raise
    except Exception as e:
        logger.error(f"Error fetching track: {e}")
        return last_track_id
