# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast API Request Utilities."""

from __future__ import annotations

from requests.exceptions import HTTPError


def decode_http_err(exc: HTTPError) -> str:
    """Decode HTTP error."""
    response = exc.response
    if response is None:
        return str(exc)

    try:
        detail_json = response.json()
        if isinstance(detail_json, dict) and "error_msg" in detail_json:
            error_str = (
                f"Error Code: {response.status_code}\n"
                f"Detail: {detail_json['error_msg']}"
            )
        else:
            error_str = f"Error Code: {response.status_code}"
    except ValueError:
        error_str = f"Error Code: {response.status_code}\nDetail: {response.text}"

    return error_str
