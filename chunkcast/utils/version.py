# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Version utils."""


from __future__ import annotations

from importlib.metadata import version

CHUNKCAST_PACKAGE_NAME = "chunkcast"


def get_installed_version() -> str:
    """Get the currently installed CLI version."""
    return version(CHUNKCAST_PACKAGE_NAME)
