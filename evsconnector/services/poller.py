"""Job status polling loop.

Each cycle fetches GET {base}/job/status/{job_id}, folds the response into a
PollSnapshot, reports progress increases and checks the exit conditions:

- the status equals the configured completion status (case-insensitive);
- the status is in TERMINAL_STATUSES;
- the floored progress reaches the completion threshold;
- the status endpoint answers 404 or 405 (the server does not offer it);
- the deadline has passed (checked after the cycle's fetch).

Other unparsable or non-2xx responses keep the previous status and progress.
Transport errors propagate as TransportError.
"""

import logging
import math
import time
from collections.abc import Callable
from urllib.parse import quote

import httpx

from evsconnector.services.errors import TransportError
from evsconnector.services.submitter import decode_body
from evsconnector.services.types import ExitReason, PollResult, PollSnapshot

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"COMPLETED", "FAILED", "CANCELED", "CANCELLED", "SUCCESS", "SUCCESSFUL"})

DEFAULT_INTERVAL_SECONDS = 5.0
DEFAULT_TIMEOUT_SECONDS = 60.0

# Servers without a status endpoint answer with one of these.
STATUS_UNAVAILABLE_CODES = frozenset({404, 405})

_NO_CACHE_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

ProgressCallback = Callable[[int, str], None]


def status_url(base_url: str, job_id: str) -> str:
    return f"{base_url}/job/status/{quote(job_id, safe='')}"


def _as_progress(value: object) -> float | None:
    """Numeric progress clamped to 0-100, or None if *value* is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return min(100.0, max(0.0, number))


def floored_percent(progress: float) -> int:
    return min(100, math.floor(progress))


class StatusPoller:
    """Polls one job until it reaches a terminal condition or the deadline."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        completion_progress: float = 100.0,
        completion_status: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._interval = interval_seconds
        self._completion_progress = completion_progress
        self._completion_status = (completion_status or "").strip().upper() or None
        self._clock = clock
        self._sleep = sleep
        self._wall_clock = wall_clock

    def poll(
        self,
        base_url: str,
        job_id: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        on_progress: ProgressCallback | None = None,
    ) -> PollResult:
        """Poll *job_id* until an exit condition holds and return the final snapshot."""
        url = status_url(base_url, job_id)
        started = self._clock()
        deadline = started + timeout_seconds
        snapshot = PollSnapshot(status="", progress=0.0, body="")
        last_emitted = 0
        cycles = 0

        logger.info("polling job %s every %gs (timeout %gs)", job_id, self._interval, timeout_seconds)
        while True:
            response = self._fetch(url)
            cycles += 1
            self._apply(snapshot, response, job_id)

            percent = floored_percent(snapshot["progress"])
            if percent > last_emitted:
                last_emitted = percent
                logger.info("job %s progress %d%% (%s)", job_id, percent, snapshot["status"] or "UNKNOWN")
                if on_progress is not None:
                    on_progress(percent, snapshot["status"])

            reason = self._exit_reason(snapshot, response)
            if reason is None and self._clock() >= deadline:
                reason = "deadline"
            if reason is not None:
                elapsed = self._clock() - started
                logger.info(
                    "stopped polling job %s after %d cycle(s): %s (status=%s, progress=%g)",
                    job_id,
                    cycles,
                    reason,
                    snapshot["status"] or "UNKNOWN",
                    snapshot["progress"],
                )
                return PollResult(exit_reason=reason, snapshot=snapshot, elapsed_seconds=elapsed, cycles=cycles)

            self._sleep(self._interval)

    def _fetch(self, url: str) -> httpx.Response:
        # Cache-busting query parameter.
        params = {"_": str(int(self._wall_clock() * 1000))}
        try:
            return self._client.get(url, params=params, headers=_NO_CACHE_HEADERS)
        except httpx.HTTPError as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

    def _apply(self, snapshot: PollSnapshot, response: httpx.Response, job_id: str) -> None:
        """Fold one status response into *snapshot*; keeps old values on bad responses."""
        snapshot["body"] = response.text
        if not response.is_success:
            logger.warning("status request for job %s returned HTTP %d", job_id, response.status_code)
            return
        payload = decode_body(response)
        if not isinstance(payload, dict):
            logger.warning("unparsable status response for job %s, keeping last values", job_id)
            return

        status = payload.get("status")
        if status is None:
            status = payload.get("state")
        if status is not None and str(status).strip():
            snapshot["status"] = str(status).strip()

        progress = _as_progress(payload.get("progress"))
        if progress is not None:
            snapshot["progress"] = progress

    def _exit_reason(self, snapshot: PollSnapshot, response: httpx.Response) -> ExitReason | None:
        if response.status_code in STATUS_UNAVAILABLE_CODES:
            return "status_unavailable"
        status = snapshot["status"].upper()
        if self._completion_status is not None and status == self._completion_status:
            return "completion_status"
        if status in TERMINAL_STATUSES:
            return "terminal_status"
        if math.floor(snapshot["progress"]) >= self._completion_progress:
            return "progress"
        return None
