# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Test file system utils."""

from __future__ import annotations

from pathlib import Path

import pytest

from chunkcast.errors import InvalidPathError
from chunkcast.utils.fs import get_file_size, stat_upload_source
from chunkcast.utils.format import format_bytes


def test_get_file_size(tmp_path: Path):
    path = tmp_path / "video.mp4"
    path.write_bytes(b"x" * 42)

    assert get_file_size(path) == 42
    assert get_file_size(str(path)) == 42
    assert stat_upload_source(path) == 42


def test_stat_upload_source_rejects_missing_and_directories(tmp_path: Path):
    with pytest.raises(InvalidPathError):
        stat_upload_source(tmp_path / "missing.mp4")
    with pytest.raises(InvalidPathError):
        stat_upload_source(tmp_path)


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (2048, "2.0 KiB"),
        (10485760, "10.0 MiB"),
        (3 * 1024**3, "3.0 GiB"),
        (5 * 1024**4, "5.0 TiB"),
    ],
)
def test_format_bytes(num_bytes: int, expected: str):
    assert format_bytes(num_bytes) == expected
