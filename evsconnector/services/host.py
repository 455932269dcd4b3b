"""Host capability interface and an in-memory host."""

from collections.abc import Callable, Mapping
from typing import Protocol

from evsconnector.services.types import ProgressEvent


class HostBindings(Protocol):
    """What the connector needs from the workflow engine running it."""

    def get_input(self, name: str) -> object: ...

    def set_output(self, name: str, value: object) -> None: ...

    def report_progress(self, percent: int, status: str) -> None: ...


class RecordingHost:
    """Host that reads inputs from a mapping and records outputs and progress.

    Used by the HTTP and command-line runners. *on_progress* is called for
    every progress event after it is recorded.
    """

    def __init__(
        self,
        inputs: Mapping[str, object] | None = None,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> None:
        self.inputs: dict[str, object] = {str(k): v for k, v in (inputs or {}).items()}
        self.outputs: dict[str, object] = {}
        self.progress: list[ProgressEvent] = []
        self._on_progress = on_progress

    def get_input(self, name: str) -> object:
        return self.inputs.get(str(name))

    def set_output(self, name: str, value: object) -> None:
        self.outputs[str(name)] = value

    def report_progress(self, percent: int, status: str) -> None:
        event = ProgressEvent(percent=percent, status=status)
        self.progress.append(event)
        if self._on_progress is not None:
            self._on_progress(event)
