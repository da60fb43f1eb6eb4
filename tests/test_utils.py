import io
import tarfile

from rik.utils import (
    create_directory_if_not_exists,
    create_file_with_parent_folders,
    find_binary,
    generate_hash,
    get_random_hash,
    unpack,
)


def test_find_binary_on_path(tmp_path, monkeypatch):
    tool = tmp_path / "mytool"
    tool.write_text("#!/bin/sh\n")
    monkeypatch.setenv("PATH", str(tmp_path))
    assert find_binary("mytool") == tool


def test_find_binary_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path))
    assert find_binary("absent-tool") is None


def test_find_binary_ignores_directories(tmp_path, monkeypatch):
    (tmp_path / "adir").mkdir()
    monkeypatch.setenv("PATH", str(tmp_path))
    assert find_binary("adir") is None


def test_generate_hash_is_stable_and_distinguishes():
    first = generate_hash(("alpine", "latest"))
    assert first == generate_hash(("alpine", "latest"))
    assert first != generate_hash(("alpine", "edge"))
    assert 0 <= first < 2**64


def test_unpack_extracts_archive(tmp_path):
    archive = tmp_path / "bundle.tar.gz"
    payload = b"content of the file"
    with tarfile.open(archive, "w:gz") as tar:
        info = tarfile.TarInfo("rootfs/hello.txt")
        info.size = len(payload)
        tar.addfile(info, io.BytesIO(payload))
    dest = tmp_path / "out"
    unpack(str(archive), dest)
    assert (dest / "rootfs" / "hello.txt").read_bytes() == payload


def test_create_file_with_parent_folders(tmp_path):
    target = tmp_path / "a" / "b" / "config.toml"
    with create_file_with_parent_folders(target) as handle:
        handle.write(b"data")
    assert target.read_bytes() == b"data"


def test_create_directory_if_not_exists(tmp_path):
    target = tmp_path / "x" / "y"
    create_directory_if_not_exists(target)
    create_directory_if_not_exists(target)
    assert target.is_dir()


def test_get_random_hash_length_and_charset():
    value = get_random_hash(5)
    assert len(value) == 5
    assert value.isalnum() and value.isascii()