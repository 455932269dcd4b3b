"""EVS Connector node: submit the job, poll it, resolve the outcome."""

import logging
import os
import time
from collections.abc import Callable
from urllib.parse import quote

import httpx
import pydantic

from evsconnector.schemas.job import ConnectorInputs
from evsconnector.schemas.node import InputName, OutputName
from evsconnector.services.errors import ConnectorError, JobCreationError, TransportError, ValidationError
from evsconnector.services.host import HostBindings
from evsconnector.services.poller import StatusPoller
from evsconnector.services.request_builder import build_job_request, normalize_base
from evsconnector.services.resolver import classify_outcome, resolve_outcome
from evsconnector.services.submitter import JSON_HEADERS, JobSubmitter, validate_inputs
from evsconnector.services.types import JobCreationResult, PollOutcome

logger = logging.getLogger(__name__)


def _request_timeout_seconds() -> float:
    return float(os.environ.get("EVS_REQUEST_TIMEOUT_SECONDS", "60"))


def read_inputs(host: HostBindings) -> ConnectorInputs:
    """Read every node input from *host*.

    Raises ValidationError if an input has the wrong type or is out of range.
    """
    values = {name.value: host.get_input(name) for name in InputName}
    try:
        return ConnectorInputs.from_values(values)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid node inputs: {problems}") from exc


def _record_creation(host: HostBindings, result: JobCreationResult) -> None:
    host.set_output(OutputName.STATUS, result["http_status"])
    host.set_output(OutputName.HEADERS, result["headers"])
    host.set_output(OutputName.BODY, result["body"])
    host.set_output(OutputName.RUN_TIME, result["elapsed_ms"])
    host.set_output(OutputName.JOB_ID, result["job_id"])


class EvsConnector:
    """Runs the EVS Connector node against a host.

    *client* is shared across runs when given; otherwise each run opens and
    closes its own httpx.Client. *clock* and *sleep* drive the polling loop.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._clock = clock
        self._sleep = sleep

    def run(self, host: HostBindings) -> PollOutcome:
        """Execute one invocation; outputs are written to *host* as they become known.

        Returns the outcome on success (including a tolerated timeout).
        Raises a ConnectorError subclass on failure; outputs recorded up to
        that point stay on the host.
        """
        started = self._clock()
        try:
            if self._client is not None:
                return self._run(host, self._client, started)
            with httpx.Client(timeout=_request_timeout_seconds()) as client:
                return self._run(host, client, started)
        except ConnectorError as exc:
            logger.error("EVS transfer failed: %s", exc)
            raise

    def _run(self, host: HostBindings, client: httpx.Client, started: float) -> PollOutcome:
        inputs = read_inputs(host)
        validate_inputs(inputs)

        base_url = normalize_base(inputs.host_url)
        job = build_job_request(inputs)
        request_json = job.to_json()
        host.set_output(OutputName.REQUEST, request_json)

        submitter = JobSubmitter(client, clock=self._clock)
        try:
            created = submitter.submit(base_url, job, started, request_json=request_json)
        except JobCreationError as exc:
            _record_creation(host, exc.result)
            raise
        _record_creation(host, created)
        job_id = created["job_id"]

        def on_progress(percent: int, status: str) -> None:
            host.report_progress(percent, status)
            host.set_output(OutputName.PROGRESS, percent)

        poller = StatusPoller(
            client,
            interval_seconds=inputs.poll_interval_seconds,
            completion_progress=inputs.completion_progress,
            completion_status=inputs.completion_status,
            clock=self._clock,
            sleep=self._sleep,
        )
        try:
            result = poller.poll(
                base_url,
                job_id,
                timeout_seconds=inputs.timeout_seconds,
                on_progress=on_progress,
            )
        except TransportError:
            if inputs.stop_job_on_error:
                self._stop_job(client, base_url, job_id)
            raise

        outcome = classify_outcome(job_id, result)
        return resolve_outcome(outcome, host, timeout_as_failure=inputs.timeout_as_failure)

    def _stop_job(self, client: httpx.Client, base_url: str, job_id: str) -> None:
        """Ask the service to stop *job_id*. Best-effort: failures are only logged."""
        url = f"{base_url}/job/stop/{quote(job_id, safe='')}"
        try:
            response = client.post(url, headers=JSON_HEADERS)
            logger.info("stop request for job %s returned HTTP %d", job_id, response.status_code)
        except Exception as exc:  # noqa: BLE001
            logger.warning("could not stop job %s: %s", job_id, exc)
