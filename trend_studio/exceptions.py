"""
Custom exceptions for TrendStudio operations.
"""


class StudioError(Exception):
    """Base exception for studio operations"""
    pass


class ContentRequestError(StudioError, ValueError):
    """Raised when a content generation request fails or returns an unusable payload"""
    pass


class ResponseParseError(ContentRequestError):
    """Raised when a model response does not match its declared schema"""
    pass


class ImageGenerationError(StudioError):
    """Raised when the image endpoint returns no usable image"""
    pass


class AuthenticationError(StudioError):
    """Raised when an access token cannot be acquired"""
    pass


class PublishError(StudioError):
    """Raised when the blogging platform rejects a post"""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class OperationInProgressError(StudioError):
    """Raised when a mutating operation starts while another is in flight"""
    pass


class InvalidStateError(StudioError):
    """Raised when a controller action is not allowed in the current view state"""
    pass
