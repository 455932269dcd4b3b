"""Pydantic schemas for the transfer job and the node inputs."""

import json
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from evsconnector.schemas.node import InputName

# Status the EVS Connector reports once a file is checked in at the target.
DEFAULT_COMPLETION_STATUS = "EVS Checkin"


def _default_poll_interval() -> float:
    return float(os.environ.get("EVS_POLL_INTERVAL_SECONDS", "5"))


class MetadataEntry(BaseModel):
    id: str = Field(..., min_length=1)
    value: str = ""

    model_config = ConfigDict(frozen=True)


class JobRequest(BaseModel):
    """Body of POST /job. Field aliases are the wire names."""

    id: str = Field(..., min_length=1)
    name: str
    target_name: str = Field(..., min_length=1, alias="targetName")
    target_id: str = Field(..., min_length=1, alias="targetId")
    file_path: str = Field(..., min_length=1, alias="fileToTransfer")
    priority: str | None = Field(default=None, alias="xsquarePriority")
    metadata_set_name: str | None = Field(default=None, alias="metadatasetName")
    metadata: list[MetadataEntry] | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    @field_validator("priority", "metadata_set_name", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("metadata")
    @classmethod
    def empty_metadata_to_none(cls, v: list[MetadataEntry] | None) -> list[MetadataEntry] | None:
        return v or None

    def to_payload(self) -> dict[str, object]:
        """Wire payload with absent optional fields left out entirely."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Wire payload as the JSON text sent to the server."""
        return json.dumps(self.to_payload(), ensure_ascii=False)


class ConnectorInputs(BaseModel):
    """Node inputs. Aliases are the host input names; snake_case names also accepted."""

    host_url: str = Field(default="", alias=InputName.HOST_URL.value)
    target_name: str = Field(default="", alias=InputName.TARGET_NAME.value)
    target_id: str = Field(default="", alias=InputName.TARGET_ID.value)
    file_path: str = Field(default="", alias=InputName.FILE_PATH.value)
    priority: str | None = Field(default=None, alias=InputName.XSQUARE_PRIORITY.value)
    metadata_set_name: str | None = Field(default=None, alias=InputName.METADATA_SET_NAME.value)
    metadata: str | list[object] | dict[str, object] | None = Field(
        default=None, alias=InputName.METADATA.value
    )
    timeout_seconds: float = Field(default=60.0, gt=0, alias=InputName.TIMEOUT.value)
    timeout_as_failure: bool = Field(default=False, alias=InputName.TIMEOUT_AS_FAILURE.value)
    poll_interval_seconds: float = Field(
        default_factory=_default_poll_interval, gt=0, alias=InputName.POLL_INTERVAL.value
    )
    completion_progress: float = Field(
        default=100.0, gt=0, le=100, alias=InputName.COMPLETION_PROGRESS.value
    )
    completion_status: str | None = Field(
        default=DEFAULT_COMPLETION_STATUS, alias=InputName.COMPLETION_STATUS.value
    )
    stop_job_on_error: bool = Field(default=False, alias=InputName.STOP_JOB_ON_ERROR.value)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_unset(cls, data: object) -> object:
        # Hosts report unset inputs as None or "".
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data

    @field_validator("host_url", "target_name", "target_id", "file_path", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> str:
        return str(v).strip()

    @field_validator("priority", "metadata_set_name", "completion_status", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: object) -> str | None:
        text = str(v).strip()
        return text or None

    @field_validator("metadata", mode="before")
    @classmethod
    def scalar_metadata_to_text(cls, v: object) -> object:
        # Numbers and flags are left for parse_metadata to reject as text.
        if isinstance(v, (str, list, dict)):
            return v
        return str(v)

    @classmethod
    def from_values(cls, values: Mapping[str, object]) -> "ConnectorInputs":
        return cls.model_validate(dict(values))

    def as_input_values(self) -> dict[str, object]:
        """Inputs keyed by host input name."""
        return self.model_dump(by_alias=True)
