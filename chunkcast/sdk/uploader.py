# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunked file uploader."""

# pylint: disable=too-many-return-statements

from __future__ import annotations

import os
from typing import BinaryIO, Callable, Iterable, List, Optional, Union

from chunkcast.client.upload import UploadClient
from chunkcast.enums import FailureStage, UploadState
from chunkcast.errors import (
    DispatchQueueClosedError,
    FinalizeError,
    InvalidPathError,
    NegotiationError,
)
from chunkcast.logging import logger
from chunkcast.schema.config import UploaderConfig
from chunkcast.schema.resource.v1.transfer import FinalizeResult, UploadSession
from chunkcast.utils.fs import stat_upload_source
from chunkcast.utils.transfer import (
    FragmentDispatcher,
    FragmentTaskQueue,
    ProgressReporter,
    make_progress_bar,
    read_fragments,
)

PathLike = Union[str, "os.PathLike[str]"]
ProgressFactory = Callable[[str, int], ProgressReporter]

COMPLETION_POLL_INTERVAL = 1.0


class Uploader:
    """Drives the full upload lifecycle of local files.

    A file goes through ``IDLE -> NEGOTIATING -> DISPATCHING ->
    AWAITING_COMPLETION -> FINALIZING -> DONE``, or ends up in ``FAILED`` with the
    stage that failed. Failures are returned as results, never raised, so a batch
    keeps going after a failed file.

    Examples:
        Basic usage:

        ```python
        from chunkcast.schema.config import Credential, UploaderConfig
        from chunkcast.sdk.uploader import Uploader

        uploader = Uploader(
            UploaderConfig(credential=Credential(token="TOKEN", uid="UID"))
        )
        for result in uploader.upload_many(["a.mp4", "b.mp4"]):
            print(result.path, result.state)
        ```

    """

    def __init__(
        self,
        config: UploaderConfig,
        client: Optional[UploadClient] = None,
        progress_factory: Optional[ProgressFactory] = None,
    ) -> None:
        """Initialize Uploader.

        Args:
            config (UploaderConfig): Credential, retry policy and request timeout.
            client (Optional[UploadClient], optional): Client to the upload service.
                Defaults to a new ``UploadClient``.
            progress_factory (Optional[ProgressFactory], optional): Creates a progress
                reporter from a file name and a total byte size. Defaults to a
                ``tqdm`` progress bar.

        """
        self._config = config
        self._client = client or UploadClient(timeout=config.request_timeout)
        self._progress_factory = progress_factory or make_progress_bar
        self.state = UploadState.IDLE

    def upload_many(self, paths: Iterable[PathLike]) -> List[FinalizeResult]:
        """Upload files one after another."""
        return [self.upload(path) for path in paths]

    def upload(self, path: PathLike) -> FinalizeResult:
        """Upload a file and register it to the service.

        Args:
            path (PathLike): Path to the local file.

        Returns:
            FinalizeResult: Terminal outcome of the upload.

        """
        path_str = os.fspath(path)
        self.state = UploadState.IDLE
        try:
            file_size = stat_upload_source(path_str)
        except InvalidPathError as exc:
            return self._fail(path_str, FailureStage.OPEN, exc)

        self.state = UploadState.NEGOTIATING
        try:
            session = self._client.negotiate_config(
                path_str, file_size, self._config.credential
            )
        except NegotiationError as exc:
            return self._fail(path_str, FailureStage.NEGOTIATE, exc)
        logger.info(
            "Uploading '%s' (%d bytes) in %d fragments of %d bytes with %d workers.",
            session.file_name,
            session.file_size,
            session.num_fragments,
            session.fragment_size,
            session.parallel,
        )

        self.state = UploadState.DISPATCHING
        try:
            f = open(path_str, "rb")  # pylint: disable=consider-using-with
        except OSError as exc:
            return self._fail(
                path_str,
                FailureStage.OPEN,
                InvalidPathError(f"Cannot open '{path_str}': {exc!r}"),
            )

        with f:
            result = self._dispatch(f, session)
        if result is not None:
            return result

        self.state = UploadState.FINALIZING
        logger.debug("finishing upload...")
        try:
            self._client.signal_ready(session)
            artifact_id = self._client.commit(session)
        except FinalizeError as exc:
            return self._fail(
                path_str,
                FailureStage.FINALIZE,
                exc,
                finalize_step=exc.step,
                bytes_uploaded=file_size,
                num_fragments=session.num_fragments,
            )

        self.state = UploadState.DONE
        logger.info("Uploaded '%s' successfully.", session.file_name)
        return FinalizeResult(
            path=path_str,
            state=UploadState.DONE,
            bytes_uploaded=file_size,
            num_fragments=session.num_fragments,
            artifact_id=artifact_id,
        )

    def _dispatch(
        self, f: BinaryIO, session: UploadSession
    ) -> Optional[FinalizeResult]:
        """Upload every fragment of the file. Returns a result only on failure."""
        task_queue = FragmentTaskQueue(retry_policy=self._config.retry_policy)
        progress = self._progress_factory(session.file_name, session.file_size)
        dispatcher = FragmentDispatcher(self._client, session, task_queue, progress)

        dispatcher.start()
        try:
            num_fragments = 0
            try:
                for fragment in read_fragments(f, session.fragment_size):
                    if task_queue.error is not None:
                        break
                    task_queue.submit(fragment)
                    num_fragments += 1
            except DispatchQueueClosedError:
                # Aborted by a worker; the waiter below gets the cause.
                pass
            except OSError as exc:
                dispatcher.abort(exc)
                return self._fail(
                    session.file_path,
                    FailureStage.READ,
                    exc,
                    bytes_uploaded=task_queue.acknowledged_bytes,
                    num_fragments=num_fragments,
                )

            self.state = UploadState.AWAITING_COMPLETION
            try:
                while not task_queue.wait(timeout=COMPLETION_POLL_INTERVAL):
                    pass
            except Exception as exc:  # pylint: disable=broad-exception-caught
                dispatcher.abort(exc)
                return self._fail(
                    session.file_path,
                    FailureStage.UPLOAD,
                    exc,
                    bytes_uploaded=task_queue.acknowledged_bytes,
                    num_fragments=num_fragments,
                )
            dispatcher.join()
        except KeyboardInterrupt:
            logger.warning("Keyboard interrupted. Wait a few seconds for the shutdown.")
            dispatcher.abort(KeyboardInterrupt(), wait=False)
            raise
        finally:
            progress.close()

        return None

    def _fail(
        self,
        path: str,
        stage: FailureStage,
        exc: BaseException,
        **kwargs,
    ) -> FinalizeResult:
        self.state = UploadState.FAILED
        logger.warning("Failed to upload '%s' at the %s stage: %s", path, stage, exc)
        return FinalizeResult(
            path=path,
            state=UploadState.FAILED,
            failed_stage=stage,
            error=str(exc),
            **kwargs,
        )
