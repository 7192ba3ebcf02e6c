# Copyright (c) 2022-present, FriendliAI Inc. All rights reserved.

"""Chunkcast URL Utilities."""

from __future__ import annotations

from urllib.parse import urljoin


class URLProvider:
    """Service URL provider."""

    member_url = ""
    media_cloud_url = ""

    @classmethod
    def get_member_uri(cls, path: str) -> str:
        """Get a member API URI."""
        return urljoin(cls.member_url, path)

    @classmethod
    def get_media_cloud_uri(cls, path: str) -> str:
        """Get a media cloud URI."""
        return urljoin(cls.media_cloud_url, path)

    @classmethod
    def get_upload_config_uri(cls) -> str:
        """Get the URI negotiating the upload config."""
        return cls.get_member_uri("getKSCloudToken")

    @classmethod
    def get_upload_finish_uri(cls) -> str:
        """Get the URI signaling that every fragment is uploaded."""
        return cls.get_member_uri("uploadFinish")

    @classmethod
    def get_create_video_uri(cls) -> str:
        """Get the URI registering the uploaded video."""
        return cls.get_member_uri("createVideo")

    @classmethod
    def get_fragment_uri(cls) -> str:
        """Get the URI receiving fragments."""
        return cls.get_media_cloud_uri("fragment")


class ProductionURLProvider(URLProvider):
    """Production service URL provider."""

    member_url = "https://member.acfun.cn/video/api/"
    media_cloud_url = "https://mediacloud.kuaishou.com/api/upload/"
