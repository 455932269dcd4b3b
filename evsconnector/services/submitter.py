"""Job submission: input validation, POST /job and job id resolution."""

import json
import logging
import time
from collections.abc import Callable

import httpx

from evsconnector.schemas.job import ConnectorInputs, JobRequest
from evsconnector.schemas.node import InputName
from evsconnector.services.errors import JobCreationError, TransportError, ValidationError
from evsconnector.services.types import JobCreationResult

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

_REQUIRED_INPUTS: tuple[tuple[str, InputName], ...] = (
    ("host_url", InputName.HOST_URL),
    ("target_name", InputName.TARGET_NAME),
    ("target_id", InputName.TARGET_ID),
    ("file_path", InputName.FILE_PATH),
)


def validate_inputs(inputs: ConnectorInputs) -> None:
    """Raise ValidationError naming the first blank required input."""
    for field, input_name in _REQUIRED_INPUTS:
        if not str(getattr(inputs, field) or "").strip():
            raise ValidationError(f"{input_name} is required")


def decode_body(response: httpx.Response) -> object:
    """Return the JSON-decoded body, or the raw text when it is not JSON.

    A JSON string that itself holds JSON is decoded a second time.
    """
    try:
        data: object = response.json()
    except ValueError:
        return response.text
    if isinstance(data, str):
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return data
    return data


def pretty_body(response: httpx.Response) -> str:
    """JSON bodies indented for display, anything else as received."""
    data = decode_body(response)
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2, ensure_ascii=False)


def extract_job_id(data: object) -> str | None:
    """Server job id from a creation response body.

    Precedence: id, jobId, data.id, data.jobId. Returns None if none is present.
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError:
            return None
    if not isinstance(data, dict):
        return None
    candidates = [data.get("id"), data.get("jobId")]
    nested = data.get("data")
    if isinstance(nested, dict):
        candidates += [nested.get("id"), nested.get("jobId")]
    for candidate in candidates:
        if candidate is not None and not isinstance(candidate, (dict, list)) and str(candidate).strip():
            return str(candidate).strip()
    return None


class JobSubmitter:
    """Creates a transfer job on the EVS Connector."""

    def __init__(self, client: httpx.Client, clock: Callable[[], float] = time.monotonic) -> None:
        self._client = client
        self._clock = clock

    def submit(
        self, base_url: str, job: JobRequest, started: float, *, request_json: str | None = None
    ) -> JobCreationResult:
        """POST *job* to {base_url}/job and return the recorded response.

        *started* is the invocation start on the submitter's clock; elapsed_ms
        is measured from it. *request_json* is sent as the body when given,
        otherwise job.to_json(). Every HTTP status is treated as a response.
        Raises TransportError if the request cannot be sent.
        Raises JobCreationError (carrying the result) on status >= 400.
        """
        url = f"{base_url}/job"
        body = request_json if request_json is not None else job.to_json()
        logger.info("creating job %s (%s) at %s", job.id, job.name, url)
        try:
            response = self._client.post(url, content=body.encode("utf-8"), headers=JSON_HEADERS)
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc

        server_id = extract_job_id(decode_body(response))
        result = JobCreationResult(
            url=url,
            http_status=response.status_code,
            headers=dict(response.headers),
            body=pretty_body(response),
            elapsed_ms=int((self._clock() - started) * 1000),
            job_id=server_id or job.id,
        )
        if response.status_code >= 400:
            raise JobCreationError(result)

        if server_id and server_id != job.id:
            logger.info("server assigned job id %s (client id %s)", server_id, job.id)
        logger.info("job %s created (HTTP %d, %d ms)", result["job_id"], result["http_status"], result["elapsed_ms"])
        return result
