# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast Client Service."""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

import pydantic
import requests
from requests.models import Response

from chunkcast.auth import get_auth_header
from chunkcast.di.injector import get_injector
from chunkcast.logging import logger
from chunkcast.schema.config import Credential
from chunkcast.settings import Settings
from chunkcast.utils.compat import model_parse
from chunkcast.utils.request import decode_http_err
from chunkcast.utils.url import URLProvider

_ModelT = TypeVar("_ModelT", bound=pydantic.BaseModel)


class ResponseDecodeError(ValueError):
    """Response body cannot be trusted."""


class HttpClient:
    """Base interface of client to the upload service.

    Each call is a single round trip. Errors are not retried here; callers decide
    how to treat them.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize client."""
        self.injector = get_injector()
        self.url_provider = self.injector.get(URLProvider)
        self.settings = self.injector.get(Settings)
        self.timeout = timeout or self.settings.request_timeout

    def post_form(
        self, url: str, data: Dict[str, Any], credential: Credential
    ) -> Response:
        """Send a form-encoded request to the member API."""
        logger.debug("endpoint: %s", url)
        logger.debug("postBody: %s", data)
        return requests.post(
            url,
            data=data,
            headers=get_auth_header(credential),
            timeout=self.timeout,
        )

    def post_binary(
        self,
        url: str,
        content: bytes,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        """Send a raw binary body."""
        return requests.post(
            url,
            data=content,
            params=params,
            headers={"Content-Type": "application/octet-stream", **(headers or {})},
            timeout=self.timeout,
        )

    def decode(self, response: Response, model: Type[_ModelT]) -> _ModelT:
        """Check the status and parse the body into the model.

        Raises:
            ResponseDecodeError: Raised when the status is not successful or the
                body does not match the model.

        """
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ResponseDecodeError(decode_http_err(exc)) from exc

        logger.debug("returns: %s", response.text)
        try:
            return model_parse(model, response.json())
        except (ValueError, pydantic.ValidationError) as exc:
            raise ResponseDecodeError(
                f"Malformed response body: {response.text!r}"
            ) from exc
