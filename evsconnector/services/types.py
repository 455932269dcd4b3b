"""Shared typed return types for connector services."""

from typing import Literal, TypedDict

ExitReason = Literal["completion_status", "terminal_status", "progress", "status_unavailable", "deadline"]
OutcomeKind = Literal["success", "failure", "timed_out"]


class JobCreationResult(TypedDict):
    url: str
    http_status: int
    headers: dict[str, str]
    body: str
    elapsed_ms: int
    job_id: str


class PollSnapshot(TypedDict):
    status: str
    progress: float
    body: str


class PollResult(TypedDict):
    exit_reason: ExitReason
    snapshot: PollSnapshot
    elapsed_seconds: float
    cycles: int


class PollOutcome(TypedDict):
    kind: OutcomeKind
    job_id: str
    status: str
    progress: float
    body: str
    elapsed_seconds: float


class ProgressEvent(TypedDict):
    percent: int
    status: str
