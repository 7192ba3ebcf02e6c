# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast Auth Tools."""

from __future__ import annotations

from typing import Any, Dict, Optional

from chunkcast.di.injector import get_injector
from chunkcast.errors import InvalidConfigError
from chunkcast.schema.config import Credential
from chunkcast.settings import Settings


def format_auth_cookie(credential: Credential) -> str:
    """Format the credential into the member API cookie."""
    return f"acPasstoken={credential.token}; auth_key={credential.uid}; "


def get_credential(
    token: Optional[str] = None, uid: Optional[str] = None
) -> Credential:
    """Get a credential from the given token and user ID.

    Raises:
        InvalidConfigError: Raised when either the token or the user ID is missing.

    """
    if not token or not uid:
        raise InvalidConfigError(
            "token or uid is missing. Pass '--token' and '--uid' or set "
            "'CHUNKCAST_TOKEN' and 'CHUNKCAST_UID' environment variables."
        )
    return Credential(token=token, uid=uid)


def get_auth_header(credential: Credential) -> Dict[str, Any]:
    """Get request headers carrying the credential.

    Returns:
        Dict[str, Any]: HTTP headers for the member API request.

    """
    settings = get_injector().get(Settings)
    return {
        "authority": settings.authority,
        "content-type": "application/x-www-form-urlencoded",
        "accept": "application/json, text/plain, */*",
        "origin": settings.origin,
        "user-agent": settings.user_agent,
        "referer": settings.referer,
        "cookie": format_auth_cookie(credential),
    }
