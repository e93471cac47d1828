import os

from coverglow.listener import UpdateListener
from coverglow.record import build_update, write_update


def touch(path, stamp):
    os.utime(path, (stamp, stamp))


def setup(tmp_path):
    received = []
    path = tmp_path / "update.json"
    return path, received, UpdateListener(path, received.append)


def test_start_delivers_existing_record(tmp_path):
    path, received, listener = setup(tmp_path)
    write_update(path, build_update("/tmp/a.jpg", [[1, 1, 1]], {"track": "A"}))

    listener.start()

    assert [u["trackInfo"]["track"] for u in received] == ["A"]
    assert listener.poll_file() is False
    assert listener.poll_directory() is False
    assert len(received) == 1


def test_start_without_record(tmp_path):
    path, received, listener = setup(tmp_path)

    listener.start()

    assert received == []
    assert listener.poll_file() is False


def test_file_watch_delivers_each_change_once(tmp_path):
    path, received, listener = setup(tmp_path)
    listener.start()

    write_update(path, build_update("/tmp/a.jpg", [[1, 1, 1]], {"track": "A"}))
    touch(path, 2000)
    assert listener.poll_file() is True
    assert listener.poll_directory() is False

    write_update(path, build_update("/tmp/b.jpg", [[2, 2, 2]], {"track": "B"}))
    touch(path, 3000)
    assert listener.poll_file() is True
    assert listener.poll_file() is False

    assert [u["trackInfo"]["track"] for u in received] == ["A", "B"]


def test_directory_watch_picks_up_new_record(tmp_path):
    path, received, listener = setup(tmp_path)
    touch(tmp_path, 1000)
    listener.start()

    write_update(path, build_update("/tmp/a.jpg", [[1, 1, 1]], {"track": "A"}))
    touch(tmp_path, 2000)

    assert listener.poll_directory() is True
    assert listener.poll_file() is False
    assert [u["trackInfo"]["track"] for u in received] == ["A"]


def test_partial_record_is_skipped_until_next_change(tmp_path):
    path, received, listener = setup(tmp_path)
    listener.start()

    path.write_text('{"imagePath": "/tmp/a.jpg", "colo')
    touch(path, 2000)
    assert listener.poll_file() is False
    assert received == []

    write_update(path, build_update("/tmp/a.jpg", [[1, 1, 1]], {"track": "A"}))
    touch(path, 3000)
    assert listener.poll_file() is True
    assert [u["trackInfo"]["track"] for u in received] == ["A"]
