# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Upload request settings."""


class Settings:
    """Request settings of the member API."""

    request_timeout = 10.0
    authority = ""
    origin = ""
    referer = ""
    user_agent = ""


class ProductionSettings(Settings):
    """Production request settings."""

    authority = "member.acfun.cn"
    origin = "https://member.acfun.cn"
    referer = "https://member.acfun.cn/upload-video"
    user_agent = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_3) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/80.0.3987.149 Safari/537.36"
    )
