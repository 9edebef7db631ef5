"""Shared fixtures for dupe tests."""

import os
import pathlib

import pytest


@pytest.fixture
def tmp_source(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create a temporary directory to scan."""
    source = tmp_path / "source"
    source.mkdir()
    return source


@pytest.fixture
def hello_world_tree(tmp_source: pathlib.Path) -> pathlib.Path:
    """a.txt and b.txt are duplicates, c.txt has the same size but differs."""
    (tmp_source / "a.txt").write_text("hello")
    (tmp_source / "b.txt").write_text("hello")
    (tmp_source / "c.txt").write_text("world")
    return tmp_source


@pytest.fixture
def triple_tree(tmp_source: pathlib.Path) -> pathlib.Path:
    """Three identical files, one unrelated file."""
    for name in ("x.bin", "y.bin", "z.bin"):
        (tmp_source / name).write_bytes(b"triple content")
    (tmp_source / "other.bin").write_bytes(b"something else entirely")
    return tmp_source


@pytest.fixture
def undecodable_tree(tmp_source: pathlib.Path) -> pathlib.Path:
    """Two identical files whose names are not valid UTF-8."""
    base = os.fsencode(tmp_source)
    try:
        for name in (b"\xffa.bin", b"\xffb.bin"):
            with open(os.path.join(base, name), "wb") as f:
                f.write(b"same bytes")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 file names")
    return tmp_source


@pytest.fixture
def hardlink_tree(tmp_source: pathlib.Path) -> pathlib.Path:
    """a and b are hardlinks of one file, c is a separate copy."""
    (tmp_source / "a").write_bytes(b"linked content")
    os.link(tmp_source / "a", tmp_source / "b")
    (tmp_source / "c").write_bytes(b"linked content")
    return tmp_source
