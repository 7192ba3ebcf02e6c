# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Transfer request and response schemas."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from chunkcast.enums import FailureStage, FinalizeStep, UploadState
from chunkcast.schema.config import Credential
from chunkcast.utils.compat import PYDANTIC_V2


class MemberApiResponse(BaseModel):
    """Common envelope of member API responses."""

    result: int
    error_msg: Optional[str] = None


class UploadConfigBlock(BaseModel):
    """Negotiated fragment upload settings."""

    part_size: int = Field(alias="partSize")
    parallel: int
    retry_count: int = Field(default=0, alias="retryCount")
    retry_duration_seconds: int = Field(default=0, alias="retryDurationSeconds")


class UploadConfigResponse(MemberApiResponse):
    """Upload config negotiation response schema."""

    host: Optional[str] = None
    upload_config: UploadConfigBlock = Field(alias="uploadConfig")
    task_id: str = Field(alias="taskId")
    token: str


class FragmentUploadResponse(BaseModel):
    """Fragment upload response schema."""

    result: int
    size: int


class CreateVideoResponse(MemberApiResponse):
    """Video registration response schema."""

    video_id: Optional[Union[int, str]] = Field(default=None, alias="videoId")


class UploadSession(BaseModel):
    """Negotiated configuration and identifiers of one file upload.

    The session is shared by the workers and cannot be modified once created.
    """

    if PYDANTIC_V2:
        model_config = {"frozen": True}
    else:

        class Config:
            """Pydantic v1 model config."""

            allow_mutation = False

    file_path: str
    file_name: str
    file_size: int
    fragment_size: int
    parallel: int
    upload_token: str
    task_id: str
    credential: Credential
    host: Optional[str] = None
    retry_count: int = 0
    retry_duration_seconds: int = 0

    @property
    def num_fragments(self) -> int:
        """Number of fragments of the file."""
        return -(-self.file_size // self.fragment_size)


class FragmentAck(BaseModel):
    """Acknowledgment of an uploaded fragment."""

    index: int
    size: int


class FinalizeResult(BaseModel):
    """Terminal outcome of one file upload."""

    path: str
    state: UploadState
    failed_stage: Optional[FailureStage] = None
    finalize_step: Optional[FinalizeStep] = None
    error: Optional[str] = None
    bytes_uploaded: int = 0
    num_fragments: int = 0
    artifact_id: Optional[str] = None

    @property
    def success(self) -> bool:
        """Whether the file reached the done state."""
        return self.state == UploadState.DONE
