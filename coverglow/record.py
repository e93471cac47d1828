"""
The shared update record the poller writes and the display watches.

One JSON file, overwritten wholesale on each track change. The write goes
through a temp file and ``os.replace`` so the reader only ever sees a whole
record; the reader still treats parse errors as a partial write and waits
for the next change.
"""
import json
import os
from pathlib import Path


def build_update(image_path, colors, track_info, audio_features=None) -> dict:
    return {
        "imagePath": str(Path(image_path).resolve()),
        "colors": [list(c) for c in colors],
        "trackInfo": track_info,
        "audioFeatures": audio_features,
    }


def write_update(path, update):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    with open(tmp, "w") as f:
        json.dump(update, f, indent=2)
    os.replace(tmp, path)


def read_update(path) -> dict:
    with open(path) as f:
        update = json.load(f)
    if not isinstance(update, dict) or "imagePath" not in update:
        raise ValueError(f"{path} is not an update record")
    return update


def start_args(update) -> list:
    """Display process positional arguments for an update."""
    return [
        update["imagePath"],
        json.dumps(update["colors"]),
        json.dumps(update["trackInfo"]),
        json.dumps(update.get("audioFeatures")),
    ]


def parse_start_args(args) -> dict:
    if len(args) < 3:
        raise ValueError("Missing arguments")
    return {
        "imagePath": args[0],
        "colors": json.loads(args[1]),
        "trackInfo": json.loads(args[2]),
        "audioFeatures": json.loads(args[3]) if len(args) >= 4 else None,
    }
