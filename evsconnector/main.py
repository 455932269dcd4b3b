"""FastAPI application entry point."""

import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")

# Apply the same format to Uvicorn's loggers so they also show timestamps.
for _uvicorn_logger in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    _log = logging.getLogger(_uvicorn_logger)
    _log.handlers.clear()
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"))
    _log.addHandler(_handler)
    _log.propagate = False

from dotenv import load_dotenv  # noqa: E402
from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware  # noqa: E402

from evsconnector.api import transfers  # noqa: E402
from evsconnector.api.transfers import TransferFailedError  # noqa: E402
from evsconnector.schemas.transfer import ErrorResponse  # noqa: E402
from evsconnector.services.errors import (  # noqa: E402
    JobCreationError,
    JobFailedError,
    JobTimeoutError,
    TransportError,
    ValidationError,
)

load_dotenv()

app = FastAPI(title="EVS Connector")

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])


@app.exception_handler(TransferFailedError)
async def _transfer_failed_handler(request: Request, exc: TransferFailedError) -> JSONResponse:
    cause = exc.cause
    if isinstance(cause, ValidationError):
        status_code, error = 422, "invalid_input"
    elif isinstance(cause, JobCreationError):
        status_code, error = 502, "job_creation_failed"
    elif isinstance(cause, TransportError):
        status_code, error = 502, "connector_unreachable"
    elif isinstance(cause, JobFailedError):
        status_code, error = 409, "job_failed"
    elif isinstance(cause, JobTimeoutError):
        status_code, error = 504, "job_timeout"
    else:
        status_code, error = 500, "transfer_failed"
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=str(cause), outputs=exc.outputs).model_dump(),
    )


@app.exception_handler(Exception)
async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="internal_error", detail=str(exc)).model_dump(),
    )


app.include_router(transfers.router, prefix="/transfers", tags=["transfers"])
