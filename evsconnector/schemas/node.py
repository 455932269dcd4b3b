"""Node descriptor: input/output names and the static node specification."""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

FieldType = Literal["STRING", "NUMBER", "BOOLEAN", "STRING_MAP"]


class InputName(StrEnum):
    HOST_URL = "Host URL"
    TARGET_NAME = "Target Name"
    TARGET_ID = "Target ID"
    FILE_PATH = "File Path"
    XSQUARE_PRIORITY = "XSquare Priority"
    METADATA_SET_NAME = "Metadata Set Name"
    METADATA = "Metadata"
    TIMEOUT = "Timeout (s)"
    TIMEOUT_AS_FAILURE = "Timeout As Failure"
    POLL_INTERVAL = "Poll Interval (s)"
    COMPLETION_PROGRESS = "Completion Progress"
    COMPLETION_STATUS = "Completion Status"
    STOP_JOB_ON_ERROR = "Stop Job On Error"


class OutputName(StrEnum):
    STATUS = "Status code"
    HEADERS = "Headers"
    BODY = "Body"
    RUN_TIME = "Run time"
    JOB_ID = "Job Id"
    REQUEST = "Request"
    JOB_STATUS = "Job Status"
    JOB_PROGRESS = "Job Progress"
    PROGRESS = "Progress"
    POLL_BODY = "Poll Body"


class NodeField(BaseModel):
    name: str
    description: str
    type: FieldType
    example: object = None
    mandatory: bool = False


class NodeSpecification(BaseModel):
    name: str
    description: str
    category: str
    version: str
    inputs: list[NodeField] = Field(default_factory=list)
    outputs: list[NodeField] = Field(default_factory=list)


NODE_SPECIFICATION = NodeSpecification(
    name="EVS Connector",
    description="Submits a transfer job to the EVS Connector and polls its status until completion.",
    category="EVS",
    version="1.1.0",
    inputs=[
        NodeField(
            name=InputName.HOST_URL,
            description="Base URL of the EVS Connector (e.g. http://host:8084 or http://host:8084/evsconn/v1)",
            type="STRING",
            example="http://10.0.0.1:8084",
            mandatory=True,
        ),
        NodeField(
            name=InputName.TARGET_NAME,
            description="Destination system or logical target name",
            type="STRING",
            example="XSquare",
            mandatory=True,
        ),
        NodeField(
            name=InputName.TARGET_ID,
            description="Identifier of the destination target (e.g. XSquare target id)",
            type="STRING",
            example="xq-target-01",
            mandatory=True,
        ),
        NodeField(
            name=InputName.FILE_PATH,
            description="Path of the file to transfer",
            type="STRING",
            example="C:/media/clip01.mov",
            mandatory=True,
        ),
        NodeField(
            name=InputName.XSQUARE_PRIORITY,
            description="Optional XSquare priority",
            type="STRING",
            example="5",
        ),
        NodeField(
            name=InputName.METADATA_SET_NAME,
            description="XSquare metadata profile name",
            type="STRING",
            example="DefaultMeta",
        ),
        NodeField(
            name=InputName.METADATA,
            description="Metadata as JSON (array of objects or simple key-value map)",
            type="STRING",
            example='[{ "id": "title", "value": "My Clip" }]',
        ),
        NodeField(
            name=InputName.TIMEOUT,
            description="Seconds to poll the job status before giving up",
            type="NUMBER",
            example=60,
        ),
        NodeField(
            name=InputName.TIMEOUT_AS_FAILURE,
            description="Fail the node when the timeout is reached instead of completing",
            type="BOOLEAN",
            example=False,
        ),
        NodeField(
            name=InputName.POLL_INTERVAL,
            description="Seconds to wait between two status requests",
            type="NUMBER",
            example=5,
        ),
        NodeField(
            name=InputName.COMPLETION_PROGRESS,
            description="Progress value (1-100) at which the job counts as done",
            type="NUMBER",
            example=100,
        ),
        NodeField(
            name=InputName.COMPLETION_STATUS,
            description="Job status that counts as done (case-insensitive, default EVS Checkin)",
            type="STRING",
            example="EVS Checkin",
        ),
        NodeField(
            name=InputName.STOP_JOB_ON_ERROR,
            description="Ask the EVS Connector to stop the job when polling fails",
            type="BOOLEAN",
            example=False,
        ),
    ],
    outputs=[
        NodeField(
            name=OutputName.STATUS,
            description="HTTP status of the POST /job request",
            type="NUMBER",
            example=200,
        ),
        NodeField(
            name=OutputName.HEADERS,
            description="Response headers from POST /job",
            type="STRING_MAP",
            example={"content-type": "application/json"},
        ),
        NodeField(
            name=OutputName.BODY,
            description="Response body from POST /job",
            type="STRING",
            example="{ id: '...', status: 'RUNNING' }",
        ),
        NodeField(
            name=OutputName.RUN_TIME,
            description="Execution time (ms) of the POST call",
            type="NUMBER",
            example=42,
        ),
        NodeField(
            name=OutputName.JOB_ID,
            description="Job id used for polling",
            type="STRING",
            example="1731312345678-abc123",
        ),
        NodeField(
            name=OutputName.REQUEST,
            description="Exact JSON request sent",
            type="STRING",
            example='{"name":"clip01.mov"}',
        ),
        NodeField(
            name=OutputName.JOB_STATUS,
            description="Final job status",
            type="STRING",
            example="COMPLETED",
        ),
        NodeField(
            name=OutputName.JOB_PROGRESS,
            description="Final reported job progress (0-100)",
            type="NUMBER",
            example=100,
        ),
        NodeField(
            name=OutputName.PROGRESS,
            description="Live job progress, updated while polling",
            type="NUMBER",
            example=45,
        ),
        NodeField(
            name=OutputName.POLL_BODY,
            description="Raw body of the last status response",
            type="STRING",
            example='{"status":"COMPLETED","progress":100}',
        ),
    ],
)
