"""Error taxonomy shared by services and the HTTP surface."""


class NutriLensError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UploadValidationError(NutriLensError):
    """The uploaded file is missing, too large, empty or not an image."""

    status_code = 400


class AnalysisFailedError(NutriLensError):
    """Base class for failures after an upload was accepted."""


class ExternalServiceError(AnalysisFailedError):
    """The vision provider failed or returned an unusable payload."""


class SchemaViolationError(AnalysisFailedError):
    """The normalized analysis does not satisfy the record schema."""


class UnexpectedAnalysisError(AnalysisFailedError):
    """Anything else that went wrong while analyzing an upload."""


class AnalysisNotFoundError(NutriLensError):
    """No analysis exists for the requested id."""

    status_code = 404

    def __init__(self, analysis_id: str) -> None:
        super().__init__("Food analysis not found")
        self.analysis_id = analysis_id


class UserAlreadyExistsError(NutriLensError):
    """The requested username is already registered."""

    status_code = 409
