"""
Custom error classes for the application
"""

from typing import Optional


class SiteServiceError(Exception):
    """Base exception for site service errors"""
    pass


class ConfigExtractionError(SiteServiceError):
    """A complete <site_config> block did not contain valid JSON"""
    pass


class UpstreamError(SiteServiceError):
    """The language model provider rejected or failed a request"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChatRequestError(SiteServiceError):
    """A chat turn failed before or during streaming"""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class RateLimitedError(ChatRequestError):
    """Chat service answered 429"""
    pass


class CreditsExhaustedError(ChatRequestError):
    """Chat service answered 402"""
    pass


class ChatTransportError(ChatRequestError):
    """Connection failed, dropped, or went idle mid-stream"""
    pass


class LeadValidationError(SiteServiceError):
    """Lead submission failed validation"""
    pass


class PublishError(SiteServiceError):
    """Publish request rejected"""

    def __init__(self, message: str, status_code: int, code: str, extra: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.extra = extra or {}


class RateLimitExceededError(SiteServiceError):
    """An endpoint's rate limit denied the request"""

    def __init__(self, message: str, retry_after: int, code: Optional[str] = None):
        super().__init__(message)
        self.retry_after = retry_after
        self.code = code
