# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Upload Client Service."""

from __future__ import annotations

import os
from typing import Optional, Union

import requests

from chunkcast.client.base import HttpClient, ResponseDecodeError
from chunkcast.enums import FinalizeStep, VodType
from chunkcast.errors import FinalizeError, NegotiationError, TransientError
from chunkcast.logging import logger
from chunkcast.schema.config import Credential
from chunkcast.schema.resource.v1.transfer import (
    CreateVideoResponse,
    FragmentAck,
    FragmentUploadResponse,
    MemberApiResponse,
    UploadConfigResponse,
    UploadSession,
)
from chunkcast.utils.compat import model_parse
from chunkcast.utils.transfer import Fragment

MEMBER_API_RESULT_OK = 0
UPLOAD_TEMPLATE = "1"


class UploadClient(HttpClient):
    """Client issuing the remote operations of a chunked upload."""

    def negotiate_config(
        self,
        file_path: Union[str, os.PathLike],
        file_size: int,
        credential: Credential,
    ) -> UploadSession:
        """Request fragment size, concurrency and upload tokens for a file.

        Args:
            file_path (Union[str, os.PathLike]): Path to the local file.
            file_size (int): Size of the file in bytes.
            credential (Credential): Member API credential.

        Raises:
            NegotiationError: Raised when the request fails, the response is
                malformed, or the service rejects the request.

        Returns:
            UploadSession: The negotiated session.

        """
        file_name = os.path.basename(os.fspath(file_path))
        logger.debug("retrieving upload config...")
        try:
            response = self.post_form(
                self.url_provider.get_upload_config_uri(),
                data={
                    "fileName": file_name,
                    "size": str(file_size),
                    "template": UPLOAD_TEMPLATE,
                },
                credential=credential,
            )
            envelope = self.decode(response, MemberApiResponse)
            if envelope.result != MEMBER_API_RESULT_OK:
                raise NegotiationError(
                    f"result={envelope.result}, error_msg={envelope.error_msg}"
                )
            config = model_parse(UploadConfigResponse, response.json())
        except requests.RequestException as exc:
            raise NegotiationError(repr(exc)) from exc
        except (ResponseDecodeError, ValueError) as exc:
            raise NegotiationError(str(exc)) from exc

        upload_config = config.upload_config
        if upload_config.part_size <= 0 or upload_config.parallel <= 0:
            raise NegotiationError(
                f"Invalid part size ({upload_config.part_size}) or parallelism "
                f"({upload_config.parallel})."
            )
        logger.debug(
            "Server retry hints: retryCount=%s, retryDurationSeconds=%s",
            upload_config.retry_count,
            upload_config.retry_duration_seconds,
        )

        return UploadSession(
            file_path=os.fspath(file_path),
            file_name=file_name,
            file_size=file_size,
            fragment_size=upload_config.part_size,
            parallel=upload_config.parallel,
            upload_token=config.token,
            task_id=config.task_id,
            credential=credential,
            host=config.host,
            retry_count=upload_config.retry_count,
            retry_duration_seconds=upload_config.retry_duration_seconds,
        )

    def upload_fragment(
        self, session: UploadSession, fragment: Fragment
    ) -> FragmentAck:
        """Upload a fragment.

        Raises:
            TransientError: Raised on any failure. The caller may retry it.

        Returns:
            FragmentAck: Acknowledgment with the size received by the service.

        """
        try:
            response = self.post_binary(
                self.url_provider.get_fragment_uri(),
                fragment.content,
                params={
                    # 1-based on the wire.
                    "fragment_id": fragment.index + 1,
                    "upload_token": session.upload_token,
                },
                headers={
                    "Content-Range": (
                        f"bytes {fragment.offset}-{fragment.end}/{session.file_size}"
                    ),
                },
            )
            body = self.decode(response, FragmentUploadResponse)
        except requests.RequestException as exc:
            raise TransientError(fragment.index, repr(exc)) from exc
        except ResponseDecodeError as exc:
            raise TransientError(fragment.index, str(exc)) from exc

        if body.result <= 0:
            raise TransientError(fragment.index, f"result={body.result}")
        if body.size != fragment.length:
            raise TransientError(
                fragment.index,
                f"size mismatch (sent {fragment.length}, received {body.size})",
            )

        return FragmentAck(index=fragment.index, size=body.size)

    def signal_ready(self, session: UploadSession) -> None:
        """Tell the service that every fragment is uploaded.

        Raises:
            FinalizeError: Raised when the request fails.

        """
        logger.debug("step1 -> api/uploadFinish")
        self._finalize_request(
            FinalizeStep.SIGNAL_READY,
            self.url_provider.get_upload_finish_uri(),
            {"taskId": session.task_id},
            session.credential,
        )

    def commit(self, session: UploadSession) -> Optional[str]:
        """Register the uploaded blob as a video named after the file.

        This call has a remote side effect and must be sent once per session.

        Raises:
            FinalizeError: Raised when the request fails.

        Returns:
            Optional[str]: ID of the registered video if the service reports it.

        """
        logger.debug("step2 -> api/createVideo")
        response = self._finalize_request(
            FinalizeStep.COMMIT,
            self.url_provider.get_create_video_uri(),
            {
                "videoKey": session.task_id,
                "fileName": session.file_name,
                "vodType": VodType.KS_CLOUD.value,
            },
            session.credential,
        )
        try:
            created = model_parse(CreateVideoResponse, response.json())
        except ValueError:
            return None
        return None if created.video_id is None else str(created.video_id)

    def _finalize_request(
        self,
        step: FinalizeStep,
        url: str,
        data: dict,
        credential: Credential,
    ) -> requests.Response:
        try:
            response = self.post_form(url, data=data, credential=credential)
            envelope = self.decode(response, MemberApiResponse)
        except requests.RequestException as exc:
            raise FinalizeError(step, repr(exc)) from exc
        except ResponseDecodeError as exc:
            raise FinalizeError(step, str(exc)) from exc

        if envelope.result != MEMBER_API_RESULT_OK:
            raise FinalizeError(
                step, f"result={envelope.result}, error_msg={envelope.error_msg}"
            )
        return response
