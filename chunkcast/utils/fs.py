# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast File System Utilities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from chunkcast.errors import InvalidPathError


def get_file_size(file_path: Union[str, Path]) -> int:
    """Calculate a file size in bytes.

    Args:
        file_path (Union[str, Path]): Path to the target file.

    Returns:
        int: The size of a file.

    """
    if isinstance(file_path, str):
        return os.stat(file_path).st_size
    return file_path.stat().st_size


def stat_upload_source(file_path: Union[str, Path]) -> int:
    """Check that the path is a regular file and get its size.

    Raises:
        InvalidPathError: Raised when the path does not exist or is not a file.

    """
    path = Path(file_path)
    try:
        if not path.is_file():
            raise InvalidPathError(f"'{path}' is not a regular file.")
        return get_file_size(path)
    except OSError as exc:
        raise InvalidPathError(f"Cannot access '{path}': {exc!r}") from exc
