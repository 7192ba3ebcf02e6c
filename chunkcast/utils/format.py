# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast CLI Formatting Utilities."""

from __future__ import annotations

from typing import NoReturn

import typer


def secho_error_and_exit(text: str, color: str = typer.colors.RED) -> NoReturn:
    """Print error and exit."""
    typer.secho(text, err=True, fg=color)
    raise typer.Exit(1)


def format_bytes(num_bytes: float) -> str:
    """Convert a byte count to a human-readable string."""
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}" if unit != "B" else f"{int(num_bytes)} B"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} TiB"
