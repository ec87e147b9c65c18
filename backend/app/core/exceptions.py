"""
Custom exception hierarchy for the WebView App Publisher.

Every error carries the HTTP status it maps to when it reaches a route:
- ValidationError: bad input, unreachable source URL, unknown track
- AuthorizationError: credential rejected or missing permission
- NotFoundError: package identifier not registered on the platform
- UploadError: artifact transport failure
- PlatformError: any other non-2xx from the publishing API
- InternalError: unexpected exception

PublishFailedError wraps one of the above together with the pipeline
stage that produced it.
"""


class PublisherException(Exception):
    """Base exception for the publisher backend."""

    status_code: int = 500

    def __init__(self, message: str = "", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PublisherException):
    """Invalid input data - the caller must fix the request."""

    status_code = 400


class AuthorizationError(PublisherException):
    """Credential rejected or insufficient permission on the package."""

    status_code = 403


class NotFoundError(PublisherException):
    """Package identifier is not registered on the platform."""

    status_code = 404


class PlatformError(PublisherException):
    """
    Non-2xx response from the publishing API.

    upstream_status holds the platform's own status code (None for
    transport failures).
    """

    status_code = 502

    def __init__(self, service: str, message: str, upstream_status: int = None):
        self.service = service
        self.upstream_status = upstream_status
        super().__init__(f"{service} API error: {message}")


class UploadError(PlatformError):
    """Artifact upload failed (transport or platform-imposed size limit)."""

    def __init__(self, message: str, upstream_status: int = None):
        super().__init__("Upload", message, upstream_status)


class InternalError(PublisherException):
    """Unexpected failure inside the application."""

    status_code = 500


class SessionError(PublisherException):
    """OAuth session is missing or expired."""

    status_code = 401


class PublishFailedError(PublisherException):
    """
    Publish pipeline aborted.

    stage is the name of the pipeline state that failed, cause the
    original PublisherException. label prefixes the user-visible message.
    """

    def __init__(self, stage: str, cause: PublisherException, label: str | None = None):
        self.stage = stage
        self.cause = cause
        detail = cause.message or str(cause)
        message = f"{label}: {detail}" if label else detail
        super().__init__(message, status_code=cause.status_code)
