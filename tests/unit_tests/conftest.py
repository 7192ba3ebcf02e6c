# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Common fixtures for unit testing."""

from __future__ import annotations

import os
import threading
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

import pytest
from injector import Binder

from chunkcast.di.injector import patch_modules
from chunkcast.enums import FinalizeStep
from chunkcast.errors import FinalizeError, NegotiationError, TransientError
from chunkcast.schema.config import Credential, UploaderConfig
from chunkcast.schema.resource.v1.transfer import FragmentAck, UploadSession
from chunkcast.settings import ProductionSettings, Settings
from chunkcast.utils.transfer import Fragment
from chunkcast.utils.url import URLProvider


class FakeURLProvider(URLProvider):
    """URL provider pointing at fake hosts."""

    member_url = "https://member.example.com/video/api/"
    media_cloud_url = "https://mediacloud.example.com/api/upload/"


@pytest.fixture(autouse=True)
def test_url_provider() -> Iterator[None]:
    def configure(binder: Binder) -> None:
        binder.bind(URLProvider, to=FakeURLProvider)  # type: ignore
        binder.bind(Settings, to=ProductionSettings)  # type: ignore

    with patch_modules(configure):
        yield


@pytest.fixture
def credential() -> Credential:
    return Credential(token="fake-token", uid="fake-uid")


@pytest.fixture
def uploader_config(credential: Credential) -> UploaderConfig:
    return UploaderConfig(credential=credential)


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[[str, bytes], Path]:
    def _make_file(name: str, content: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(content)
        return path

    return _make_file


def _make_session(
    credential: Credential,
    file_path: str = "/tmp/video.mp4",
    file_size: int = 0,
    fragment_size: int = 4,
    parallel: int = 2,
) -> UploadSession:
    return UploadSession(
        file_path=file_path,
        file_name=os.path.basename(file_path),
        file_size=file_size,
        fragment_size=fragment_size,
        parallel=parallel,
        upload_token="fake-upload-token",
        task_id="fake-task-id",
        credential=credential,
    )


class RecordingProgress:
    """Progress reporter recording increments."""

    def __init__(self, desc: str = "", total: int = 0) -> None:
        self.desc = desc
        self.total = total
        self.increments: List[int] = []
        self.closed = False
        self._lock = threading.Lock()

    def update(self, n: int) -> None:
        with self._lock:
            self.increments.append(n)

    def close(self) -> None:
        self.closed = True

    @property
    def n(self) -> int:
        return sum(self.increments)


class FakeUploadClient:
    """In-memory upload client.

    ``failures`` maps a fragment index to the number of attempts failing before the
    first success. A negative count fails forever.
    """

    def __init__(
        self,
        fragment_size: int = 4,
        parallel: int = 2,
        failures: Optional[Dict[int, int]] = None,
        negotiate_error: bool = False,
        finalize_error_step: Optional[FinalizeStep] = None,
    ) -> None:
        self.fragment_size = fragment_size
        self.parallel = parallel
        self.failures = dict(failures or {})
        self.negotiate_error = negotiate_error
        self.finalize_error_step = finalize_error_step

        self.events: List[str] = []
        self.attempts: Dict[int, List[bytes]] = defaultdict(list)
        self.acks: Dict[int, int] = defaultdict(int)
        self.received: Dict[int, bytes] = {}
        self._lock = threading.Lock()

    def negotiate_config(
        self, file_path, file_size: int, credential: Credential
    ) -> UploadSession:
        self.events.append(f"negotiate:{os.path.basename(os.fspath(file_path))}")
        if self.negotiate_error:
            raise NegotiationError("result=-401, error_msg=unauthorized")
        return _make_session(
            credential,
            file_path=os.fspath(file_path),
            file_size=file_size,
            fragment_size=self.fragment_size,
            parallel=self.parallel,
        )

    def upload_fragment(
        self, session: UploadSession, fragment: Fragment
    ) -> FragmentAck:
        with self._lock:
            self.attempts[fragment.index].append(fragment.content)
            remaining = self.failures.get(fragment.index, 0)
            if remaining != 0:
                self.failures[fragment.index] = remaining - 1
                raise TransientError(fragment.index, "connection reset")
            self.acks[fragment.index] += 1
            self.received[fragment.index] = fragment.content
        return FragmentAck(index=fragment.index, size=fragment.length)

    def signal_ready(self, session: UploadSession) -> None:
        self.events.append(f"signal_ready:{session.file_name}")
        if self.finalize_error_step == FinalizeStep.SIGNAL_READY:
            raise FinalizeError(FinalizeStep.SIGNAL_READY, "result=1")

    def commit(self, session: UploadSession) -> Optional[str]:
        self.events.append(f"commit:{session.file_name}")
        if self.finalize_error_step == FinalizeStep.COMMIT:
            raise FinalizeError(FinalizeStep.COMMIT, "result=1")
        return "1234"


@pytest.fixture
def fake_client() -> FakeUploadClient:
    return FakeUploadClient()


@pytest.fixture
def make_fake_client() -> Callable[..., FakeUploadClient]:
    return FakeUploadClient


@pytest.fixture
def make_session(credential: Credential) -> Callable[..., UploadSession]:
    def _make(**kwargs) -> UploadSession:
        return _make_session(credential, **kwargs)

    return _make


@pytest.fixture
def make_progress() -> Callable[..., RecordingProgress]:
    return RecordingProgress
