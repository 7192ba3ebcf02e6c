# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast errors."""

from __future__ import annotations

from typing import Optional

from chunkcast.enums import FinalizeStep


class ChunkcastError(Exception):
    """Chunkcast exception base."""


class InvalidConfigError(ChunkcastError):
    """Invalid configuration provided."""

    def __init__(self, detail: Optional[str] = None) -> None:
        """Initialize InvalidConfigError."""
        super().__init__(f"Invalid configuration provided: {detail}")


class InvalidPathError(ChunkcastError):
    """Invalid path provided."""

    def __init__(self, detail: Optional[str] = None) -> None:
        """Initialize InvalidPathError."""
        super().__init__(f"Invalid path provided: {detail}")


class NegotiationError(ChunkcastError):
    """Upload configuration negotiation failed."""

    def __init__(self, detail: Optional[str] = None) -> None:
        """Initialize NegotiationError."""
        super().__init__(f"Failed to negotiate upload config: {detail}")


class TransientError(ChunkcastError):
    """Fragment upload failed. Always retryable."""

    def __init__(self, index: int, detail: Optional[str] = None) -> None:
        """Initialize TransientError."""
        self.index = index
        super().__init__(f"Failed to upload fragment {index}: {detail}")


class FinalizeError(ChunkcastError):
    """One of the finalize steps failed."""

    def __init__(self, step: FinalizeStep, detail: Optional[str] = None) -> None:
        """Initialize FinalizeError."""
        self.step = step
        super().__init__(f"Failed to finalize upload at '{step.value}': {detail}")


class MaxRetriesExceededError(ChunkcastError):
    """Max retries exceeded."""

    def __init__(self, exc: Optional[Exception] = None) -> None:
        """Initialize MaxRetriesExceededError."""
        super().__init__(f"Max retries limit exceeded due to an error: {str(exc)}")


class DispatchQueueClosedError(ChunkcastError):
    """Dispatch queue is closed."""

    def __init__(self, detail: Optional[str] = None) -> None:
        """Initialize DispatchQueueClosedError."""
        super().__init__(f"Cannot put items to the closed dispatch queue: {detail}")


class ChunkcastInternalError(ChunkcastError):
    """Internal error of Chunkcast."""

    def __init__(self, message: Optional[str] = None) -> None:
        """Initialize ChunkcastInternalError."""
        if message is None:
            message = "Please report this issue"
        else:
            message = message.rstrip() + "\nPlease report this issue"

        super().__init__(message)
