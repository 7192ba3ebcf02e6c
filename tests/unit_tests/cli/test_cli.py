# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Test Chunkcast CLI."""

from __future__ import annotations

from typing import List
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from chunkcast.cli.main import app
from chunkcast.enums import FailureStage, FinalizeStep, UploadState
from chunkcast.schema.config import UploaderConfig
from chunkcast.schema.resource.v1.transfer import FinalizeResult

runner = CliRunner()


@pytest.fixture
def uploader_mock() -> MagicMock:
    with patch("chunkcast.cli.main.Uploader", autospec=True) as uploader_cls:
        yield uploader_cls


@pytest.fixture(autouse=True)
def no_env_credential(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("CHUNKCAST_TOKEN", raising=False)
    monkeypatch.delenv("CHUNKCAST_UID", raising=False)


def test_upload_reports_each_file(uploader_mock: MagicMock):
    results: List[FinalizeResult] = [
        FinalizeResult(
            path="a.mp4",
            state=UploadState.DONE,
            bytes_uploaded=2048,
            num_fragments=1,
            artifact_id="42",
        ),
        FinalizeResult(
            path="b.mp4",
            state=UploadState.FAILED,
            failed_stage=FailureStage.NEGOTIATE,
            error="result=-401",
        ),
        FinalizeResult(
            path="c.mp4",
            state=UploadState.FAILED,
            failed_stage=FailureStage.FINALIZE,
            finalize_step=FinalizeStep.COMMIT,
            error="denied",
        ),
    ]
    uploader_mock.return_value.upload.side_effect = results

    result = runner.invoke(
        app, ["upload", "--token", "tok", "--uid", "me", "a.mp4", "b.mp4", "c.mp4"]
    )

    assert result.exit_code == 0, result.output
    assert "Local: a.mp4" in result.output
    assert "Uploaded 2.0 KiB from 'a.mp4' (video ID: 42)." in result.output
    assert "Local: b.mp4" in result.output
    assert "Failed to upload 'b.mp4' at the negotiate stage: result=-401" in (
        result.output
    )
    assert "at the finalize/commit stage: denied" in result.output

    (config,), _ = uploader_mock.call_args
    assert isinstance(config, UploaderConfig)
    assert config.credential.token == "tok"
    assert config.credential.uid == "me"
    assert config.retry_policy.max_retries is None
    assert [c.args[0] for c in uploader_mock.return_value.upload.call_args_list] == [
        "a.mp4",
        "b.mp4",
        "c.mp4",
    ]


def test_upload_retry_options(uploader_mock: MagicMock):
    uploader_mock.return_value.upload.return_value = FinalizeResult(
        path="a.mp4", state=UploadState.DONE
    )

    result = runner.invoke(
        app,
        [
            "upload",
            "-t",
            "tok",
            "-u",
            "me",
            "--max-retries",
            "5",
            "--backoff",
            "0.5",
            "a.mp4",
        ],
    )

    assert result.exit_code == 0, result.output
    (config,), _ = uploader_mock.call_args
    assert config.retry_policy.max_retries == 5
    assert config.retry_policy.backoff_base == 0.5


def test_upload_credential_from_env(uploader_mock: MagicMock):
    uploader_mock.return_value.upload.return_value = FinalizeResult(
        path="a.mp4", state=UploadState.DONE
    )

    result = runner.invoke(
        app,
        ["upload", "a.mp4"],
        env={"CHUNKCAST_TOKEN": "env-tok", "CHUNKCAST_UID": "env-me"},
    )

    assert result.exit_code == 0, result.output
    (config,), _ = uploader_mock.call_args
    assert config.credential.token == "env-tok"
    assert config.credential.uid == "env-me"


def test_upload_without_credential(uploader_mock: MagicMock):
    result = runner.invoke(app, ["upload", "a.mp4"])

    assert result.exit_code == 1
    assert "token or uid is missing" in result.output
    uploader_mock.assert_not_called()


def test_version():
    with patch("chunkcast.cli.main.get_installed_version", return_value="0.1.0"):
        result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.output.strip() == "0.1.0"
