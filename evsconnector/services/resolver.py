"""Maps the end of polling onto success, failure or timeout and writes final outputs."""

import logging

from evsconnector.schemas.node import OutputName
from evsconnector.services.errors import JobFailedError, JobTimeoutError
from evsconnector.services.host import HostBindings
from evsconnector.services.types import OutcomeKind, PollOutcome, PollResult

logger = logging.getLogger(__name__)

FAILURE_STATUSES = frozenset({"FAILED", "CANCELED", "CANCELLED"})
_FAILURE_PREFIXES = ("FAIL", "CANCEL")


def is_failure_status(status: str) -> bool:
    s = status.strip().upper()
    return s in FAILURE_STATUSES or s.startswith(_FAILURE_PREFIXES)


def classify_outcome(job_id: str, result: PollResult) -> PollOutcome:
    snapshot = result["snapshot"]
    kind: OutcomeKind
    if result["exit_reason"] == "deadline":
        kind = "timed_out"
    elif is_failure_status(snapshot["status"]):
        kind = "failure"
    else:
        kind = "success"
    return PollOutcome(
        kind=kind,
        job_id=job_id,
        status=snapshot["status"],
        progress=snapshot["progress"],
        body=snapshot["body"],
        elapsed_seconds=result["elapsed_seconds"],
    )


def resolve_outcome(outcome: PollOutcome, host: HostBindings, *, timeout_as_failure: bool = False) -> PollOutcome:
    """Write final outputs, then return on success or raise on failure.

    Raises JobFailedError for a failure/cancel status.
    Raises JobTimeoutError for a timed out job when *timeout_as_failure* is set.
    """
    host.set_output(OutputName.JOB_STATUS, outcome["status"] or "UNKNOWN")
    host.set_output(OutputName.JOB_PROGRESS, outcome["progress"])
    host.set_output(OutputName.POLL_BODY, outcome["body"])

    if outcome["kind"] == "failure":
        raise JobFailedError(outcome["job_id"], outcome["status"])
    if outcome["kind"] == "timed_out":
        if timeout_as_failure:
            raise JobTimeoutError(
                outcome["job_id"], outcome["elapsed_seconds"], outcome["status"], outcome["progress"]
            )
        logger.warning(
            "job %s still %s at %g%% after %.0fs; completing without a terminal status",
            outcome["job_id"],
            outcome["status"] or "UNKNOWN",
            outcome["progress"],
            outcome["elapsed_seconds"],
        )
    return outcome
