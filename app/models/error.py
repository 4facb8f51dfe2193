"""Pipeline error kinds."""


class PipelineError(Exception):
    """Base class for errors surfaced to the webhook caller."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(PipelineError):
    """Missing or invalid webhook signature."""

    status_code = 401
    error = "Unauthorized"


class EventValidationError(PipelineError):
    """Malformed event body."""

    status_code = 400
    error = "Invalid event payload"


class NotFoundError(PipelineError):
    """Unrouted path."""

    status_code = 404
    error = "Not found"


class InternalError(PipelineError):
    """Unexpected failure during extraction, parsing or orchestration setup."""

    status_code = 500
    error = "Internal server error"


class UpstreamFailure(PipelineError):
    """
    An external reviewer or GitHub call failed.

    Captured per chunk (or per publish call) and recorded, never
    propagated as a pipeline-level failure.
    """

    status_code = 502
    error = "Upstream service failure"
