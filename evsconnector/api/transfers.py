"""Transfers API router: runs the EVS Connector node over HTTP."""

import logging

from fastapi import APIRouter

from evsconnector.schemas.job import ConnectorInputs
from evsconnector.schemas.node import NODE_SPECIFICATION, NodeSpecification
from evsconnector.schemas.transfer import TransferResponse
from evsconnector.services.connector import EvsConnector
from evsconnector.services.errors import ConnectorError
from evsconnector.services.host import RecordingHost

logger = logging.getLogger(__name__)

router = APIRouter()


class TransferFailedError(Exception):
    """Wraps a ConnectorError together with the outputs recorded before it."""

    def __init__(self, cause: ConnectorError, outputs: dict[str, object]) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.outputs = outputs


@router.get("/specification")
def specification() -> NodeSpecification:
    """Return the node descriptor: name, version, inputs and outputs."""
    return NODE_SPECIFICATION


@router.post("")
def run_transfer(inputs: ConnectorInputs) -> TransferResponse:
    """Submit a transfer job and poll it to completion.

    Blocks until the job finishes or the timeout elapses.
    """
    logger.info("transfer requested for %s to target %s", inputs.file_path, inputs.target_name)
    host = RecordingHost(inputs=inputs.as_input_values())
    try:
        EvsConnector().run(host)
    except ConnectorError as exc:
        raise TransferFailedError(exc, host.outputs) from exc
    return TransferResponse.model_validate({"outputs": host.outputs, "progress": host.progress})
