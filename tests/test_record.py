import json

import pytest

from coverglow.record import build_update, parse_start_args, read_update, start_args, write_update


def test_build_update_uses_absolute_image_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    update = build_update("temp/album-art-a1.jpg", [(1, 2, 3)], {"track": "t"}, None)

    assert update["imagePath"] == str(tmp_path / "temp" / "album-art-a1.jpg")
    assert update["colors"] == [[1, 2, 3]]
    assert update["audioFeatures"] is None


def test_write_overwrites_record(tmp_path):
    path = tmp_path / "temp" / "update.json"
    write_update(path, build_update(tmp_path / "a.jpg", [[1, 1, 1]], {"track": "A"}))
    write_update(path, build_update(tmp_path / "b.jpg", [[2, 2, 2]], {"track": "B"}))

    assert read_update(path)["trackInfo"] == {"track": "B"}
    assert sorted(p.name for p in path.parent.iterdir()) == ["update.json"]


def test_read_rejects_partial_record(tmp_path):
    path = tmp_path / "update.json"
    path.write_text('{"imagePath": "/tmp/a.jpg", "col')
    with pytest.raises(ValueError):
        read_update(path)

    path.write_text("[]")
    with pytest.raises(ValueError):
        read_update(path)


def test_start_args_are_positional_json():
    update = build_update("/tmp/a.jpg", [[1, 2, 3]], {"track": "A", "artist": "B", "album": "C"}, None)

    args = start_args(update)

    assert args[0] == "/tmp/a.jpg"
    assert json.loads(args[1]) == [[1, 2, 3]]
    assert args[3] == "null"
    assert parse_start_args(args) == update


def test_parse_start_args_audio_features_optional():
    parsed = parse_start_args(["/tmp/a.jpg", "[]", '{"track": "A"}'])
    assert parsed["audioFeatures"] is None


def test_parse_start_args_missing():
    with pytest.raises(ValueError):
        parse_start_args(["/tmp/a.jpg"])
