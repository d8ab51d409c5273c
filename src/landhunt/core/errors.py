"""Exception taxonomy for the enrichment pipeline.

Every error carries the HTTP status and error_type it maps to, so the API
layer translates them in one place.
"""


class LandhuntError(Exception):
    """Base class for all pipeline errors."""

    status_code = 500
    error_type = "pipeline_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "error_type": self.error_type}


class ValidationError(LandhuntError):
    """Caller input is missing or malformed."""

    status_code = 400
    error_type = "validation_error"


class NotFoundError(LandhuntError):
    """A referenced parcel does not exist."""

    status_code = 404
    error_type = "not_found"


class UpstreamFetchError(LandhuntError):
    """Fetching an external URL failed or returned a non-success status."""

    status_code = 502
    error_type = "upstream_fetch_error"

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.status is not None:
            data["status"] = self.status
        if self.body:
            data["body"] = self.body
        return data


class RateLimitedError(UpstreamFetchError):
    """The upstream answered 429. Passed through so callers can back off."""

    status_code = 429
    error_type = "rate_limited"


class UpstreamModelError(LandhuntError):
    """The generation service errored or returned no usable content."""

    status_code = 502
    error_type = "upstream_model_error"


class SchemaError(LandhuntError):
    """Model output was not a parseable JSON object."""

    status_code = 500
    error_type = "schema_error"

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["raw"] = self.raw
        return data


class PersistenceError(LandhuntError):
    """A store read failed, or a store write failed under PersistencePolicy.REQUIRED."""

    status_code = 500
    error_type = "persistence_error"


class StorageError(LandhuntError):
    """Blob upload failed; no document URL can be produced."""

    status_code = 500
    error_type = "storage_error"
