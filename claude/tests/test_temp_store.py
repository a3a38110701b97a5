"""Temp capture store tests."""

import os
import time

from shotpipe.temp_store import TempCaptureStore


def test_ensure_is_idempotent(tmp_path):
    store = TempCaptureStore(tmp_path / "scratch")
    store.ensure()
    store.ensure()
    assert (tmp_path / "scratch").is_dir()


def test_allocate_raw_is_stamped_png_inside_root(tmp_path):
    store = TempCaptureStore(tmp_path / "scratch")
    first = store.allocate_raw()
    second = store.allocate_raw()
    assert first != second
    for path in (first, second):
        assert path.parent == tmp_path / "scratch"
        assert path.name.startswith("temp_")
        assert path.suffix == ".png"


def test_cleanup_deletes_every_owned_file_once(tmp_path):
    store = TempCaptureStore(tmp_path / "scratch")
    raw = store.allocate_raw()
    final = store.allocate("Area.jpg")
    raw.write_bytes(b"raw")
    final.write_bytes(b"final")

    assert store.cleanup() == 2
    assert not raw.exists() and not final.exists()
    assert store.owned == []
    assert store.cleanup() == 0


def test_delete_refuses_paths_outside_root(tmp_path):
    store = TempCaptureStore(tmp_path / "scratch")
    store.ensure()
    user_file = tmp_path / "Desktop.png"
    user_file.write_bytes(b"precious")

    assert store.delete(user_file) is False
    assert store.delete(tmp_path / "scratch" / ".." / "Desktop.png") is False
    assert user_file.exists()


def test_delete_twice_is_noop(tmp_path):
    store = TempCaptureStore(tmp_path / "scratch")
    path = store.allocate("Area.png")
    path.write_bytes(b"x")
    assert store.delete(path) is True
    assert store.delete(path) is False


def test_cleanup_stale_removes_only_old_files(tmp_path):
    store = TempCaptureStore(tmp_path / "scratch")
    store.ensure()
    old = tmp_path / "scratch" / "temp_1.png"
    fresh = tmp_path / "scratch" / "temp_2.png"
    old.write_bytes(b"old")
    fresh.write_bytes(b"fresh")
    past = time.time() - 7200
    os.utime(old, (past, past))

    assert store.cleanup_stale(retention_sec=3600) == ["temp_1.png"]
    assert fresh.exists()


def test_cleanup_stale_without_directory(tmp_path):
    assert TempCaptureStore(tmp_path / "missing").cleanup_stale() == []
