# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast enums."""


from __future__ import annotations

from enum import Enum


class UploadState(str, Enum):
    """Lifecycle states of a single file upload."""

    IDLE = "idle"
    NEGOTIATING = "negotiating"
    DISPATCHING = "dispatching"
    AWAITING_COMPLETION = "awaiting_completion"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"

    def __str__(self):
        """Convert to a human-readable string."""
        return self.value


class FailureStage(str, Enum):
    """Stage where a file upload failed."""

    OPEN = "open"
    NEGOTIATE = "negotiate"
    READ = "read"
    UPLOAD = "upload"
    FINALIZE = "finalize"

    def __str__(self):
        """Convert to a human-readable string."""
        return self.value


class FinalizeStep(str, Enum):
    """Sub-steps of the finalize handshake."""

    SIGNAL_READY = "signal_ready"
    COMMIT = "commit"


class VodType(str, Enum):
    """Storage backend type of the registered video."""

    KS_CLOUD = "ksCloud"
