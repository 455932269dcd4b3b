"""Exceptions raised by an EVS Connector invocation."""

from evsconnector.services.types import JobCreationResult


class ConnectorError(Exception):
    """Base class for errors that fail a transfer invocation."""


class ValidationError(ConnectorError):
    """Raised before any network call when a required input is missing or invalid."""


class TransportError(ConnectorError):
    """Raised when the EVS Connector cannot be reached."""


class JobCreationError(ConnectorError):
    """Raised when POST /job returns an HTTP error status."""

    def __init__(self, result: JobCreationResult) -> None:
        super().__init__(f"HTTP {result['http_status']} POST {result['url']}")
        self.result = result
        self.status_code = result["http_status"]
        self.url = result["url"]


class JobFailedError(ConnectorError):
    """Raised when the job reaches a failure or cancel status."""

    def __init__(self, job_id: str, status: str) -> None:
        super().__init__(f"EVS Connector reported job {job_id} as {status}")
        self.job_id = job_id
        self.status = status


class JobTimeoutError(ConnectorError, TimeoutError):
    """Raised when polling hits the deadline and timeouts count as failures."""

    def __init__(self, job_id: str, elapsed_seconds: float, status: str, progress: float) -> None:
        super().__init__(
            f"Polling timed out after {elapsed_seconds:.0f}s for job {job_id} "
            f"(last status: {status or 'UNKNOWN'}, last progress: {progress:g})"
        )
        self.job_id = job_id
        self.elapsed_seconds = elapsed_seconds
        self.status = status
        self.progress = progress
