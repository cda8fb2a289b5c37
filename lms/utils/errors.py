"""
Domain error taxonomy. Services raise these; lms.api maps them to HTTP responses.
"""


class CurriculumError(Exception):
    """Base class for curriculum errors. `status_code` is the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class StoreError(CurriculumError):
    """A read or write against the entity store failed. Transient: the client should re-fetch."""

    status_code = 503


class CurriculumValidationError(CurriculumError):
    """Missing or invalid field (e.g. empty URL for an external_link module)."""

    status_code = 400


class ConfirmationMismatch(CurriculumError):
    """Re-typed title does not match the entity being deleted."""

    status_code = 409


class NotFoundError(CurriculumError):
    status_code = 404


class PermissionDeniedError(CurriculumError):
    status_code = 403
