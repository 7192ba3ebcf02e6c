# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Uploader configuration schemas."""

from __future__ import annotations

import random
from typing import Optional

from pydantic import BaseModel, Field


class Credential(BaseModel):
    """Member API credential."""

    token: str
    uid: str

    def __repr__(self) -> str:
        """Hide the credential values."""
        return "Credential(token=***, uid=***)"

    __str__ = __repr__


class RetryPolicy(BaseModel):
    """Retry policy for failed fragment uploads.

    The default policy retries forever without any delay. Set ``max_retries`` to
    give up on a fragment after that many failed retries, and ``backoff_base`` to
    sleep ``backoff_base * 2 ** (attempt - 1)`` seconds (capped by ``backoff_max``,
    plus up to ``jitter`` random seconds) before each retry.
    """

    max_retries: Optional[int] = Field(default=None, ge=0)
    backoff_base: float = Field(default=0.0, ge=0)
    backoff_max: float = Field(default=30.0, ge=0)
    jitter: float = Field(default=0.0, ge=0)

    def should_retry(self, failures: int) -> bool:
        """Check whether a task failed ``failures`` times can be retried."""
        if self.max_retries is None:
            return True
        return failures <= self.max_retries

    def get_backoff(self, failures: int) -> float:
        """Get seconds to wait before the retry following the ``failures``-th one."""
        if self.backoff_base <= 0 and self.jitter <= 0:
            return 0.0
        delay = 0.0
        if self.backoff_base > 0:
            delay = min(self.backoff_max, self.backoff_base * 2 ** max(failures - 1, 0))
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay


class UploaderConfig(BaseModel):
    """Configuration passed to the uploader and its client."""

    credential: Credential
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    request_timeout: Optional[float] = Field(default=None, gt=0)
