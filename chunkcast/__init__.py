# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast: concurrent fragment uploader for media ingestion services."""

from __future__ import annotations

from chunkcast.di.injector import set_default_modules
from chunkcast.di.modules import default_modules

set_default_modules(default_modules)
