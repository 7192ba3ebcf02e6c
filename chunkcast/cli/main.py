# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast CLI."""

# pylint: disable=too-many-arguments

from __future__ import annotations

from typing import List, Optional

import typer

from chunkcast.auth import get_credential
from chunkcast.errors import InvalidConfigError
from chunkcast.logging import logger, set_verbose
from chunkcast.schema.config import RetryPolicy, UploaderConfig
from chunkcast.sdk.uploader import Uploader
from chunkcast.utils.format import format_bytes, secho_error_and_exit
from chunkcast.utils.version import get_installed_version

app = typer.Typer(
    help="Upload videos in concurrent fragments 🚀",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    pretty_exceptions_enable=False,
)


@app.command()
def upload(
    files: List[str] = typer.Argument(..., help="Paths to the files to upload."),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        "-t",
        envvar="CHUNKCAST_TOKEN",
        help="Your user token (a.k.a. acPasstoken).",
    ),
    uid: Optional[str] = typer.Option(
        None,
        "--uid",
        "-u",
        envvar="CHUNKCAST_UID",
        help="Your user ID (a.k.a. auth_key).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose mode."),
    max_retries: Optional[int] = typer.Option(
        None,
        "--max-retries",
        min=0,
        help="Give up a file after a fragment fails this many retries. "
        "Retries forever by default.",
    ),
    backoff: float = typer.Option(
        0.0,
        "--backoff",
        min=0.0,
        help="Base seconds of the exponential backoff between fragment retries.",
    ),
):
    """Upload files one by one and register them as videos."""
    set_verbose(verbose)
    logger.debug("verbose = %s", verbose)
    logger.debug("files = %s", files)

    try:
        credential = get_credential(token=token, uid=uid)
    except InvalidConfigError as exc:
        secho_error_and_exit(str(exc))

    config = UploaderConfig(
        credential=credential,
        retry_policy=RetryPolicy(max_retries=max_retries, backoff_base=backoff),
    )
    uploader = Uploader(config)

    num_failed = 0
    for path in files:
        typer.echo(f"Local: {path}")
        result = uploader.upload(path)
        if result.success:
            artifact = ""
            if result.artifact_id:
                artifact = f" (video ID: {result.artifact_id})"
            typer.secho(
                f"Uploaded {format_bytes(result.bytes_uploaded)} from '{path}'"
                f"{artifact}.",
                fg=typer.colors.GREEN,
            )
        else:
            num_failed += 1
            stage = str(result.failed_stage)
            if result.finalize_step is not None:
                stage = f"{stage}/{result.finalize_step.value}"
            typer.secho(
                f"Failed to upload '{path}' at the {stage} stage: {result.error}",
                fg=typer.colors.RED,
            )

    if num_failed:
        logger.debug("%d of %d files failed.", num_failed, len(files))


@app.command()
def version():
    """Check the installed package version."""
    installed_version = get_installed_version()
    typer.echo(installed_version)
