"""Error taxonomy shared by the API routes and the service layer.

Every error carries the HTTP status it is rendered with and a message that
is safe to show to the user as-is.
"""

from __future__ import annotations


class StudioError(Exception):
    """Base class for errors rendered as ``{"success": false, "error": ...}``."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StudioError):
    status_code = 400
    default_message = "Invalid request"


class ConfigurationError(StudioError):
    status_code = 400
    default_message = "API key not configured. Please set DASHSCOPE_API_KEY in your .env file."


class RateLimitError(StudioError):
    status_code = 429
    default_message = "Too many requests. Please wait a moment before generating another video."


class NotFoundError(StudioError):
    status_code = 404
    default_message = "Video file not found"


class UpstreamError(StudioError):
    """The remote generation service rejected or failed a call."""

    status_code = 500
    default_message = "Video generation API call failed"


class UpstreamAuthError(UpstreamError):
    default_message = "API key authentication failed - please check your API key."


class UpstreamRateLimitError(UpstreamError):
    default_message = "Too many requests - please wait a moment before trying again."


class UpstreamTimeoutError(UpstreamError):
    default_message = (
        "API request timed out - the video generation service may be busy. "
        "Please try again in a few minutes."
    )


class UpstreamProtocolError(UpstreamError):
    default_message = "Invalid API response format"


class DownloadError(StudioError):
    status_code = 500
    default_message = "Video download failed"
