"""Job request construction: base URL, job name, metadata and payload."""

import json
import logging
import re
import time
import uuid

from evsconnector.schemas.job import ConnectorInputs, JobRequest, MetadataEntry

logger = logging.getLogger(__name__)

API_ROOT = "/evsconn/v1"

_API_ROOT_END_RE = re.compile(r"/evsconn/v1$", re.IGNORECASE)
# Captures everything up to and including the first /evsconn/v1 followed by more path.
_API_ROOT_MID_RE = re.compile(r"^(.*?/evsconn/v1)/", re.IGNORECASE)
_PATH_SEP_RE = re.compile(r"[\\/]")
_DEFAULT_JOB_NAME = "transfer"


def normalize_base(url: str) -> str:
    """Return *url* as an API base ending in /evsconn/v1.

    Idempotent: normalize_base(normalize_base(u)) == normalize_base(u).
    """
    base = (url or "").strip().rstrip("/")
    if _API_ROOT_END_RE.search(base):
        return base
    m = _API_ROOT_MID_RE.match(base)
    if m:
        return m.group(1)
    return base + API_ROOT


def job_name_from_path(path: str) -> str:
    """Return the last segment of *path*, splitting on both slash styles."""
    parts = [p for p in _PATH_SEP_RE.split(path or "") if p]
    if parts:
        return parts[-1]
    return path or _DEFAULT_JOB_NAME


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _usable_key(value: object) -> str | None:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    key = str(value).strip()
    return key or None


def _entry_from_item(item: object) -> MetadataEntry | None:
    """Normalise one list element; returns None when it has no usable key."""
    if not isinstance(item, dict):
        return None
    key = _usable_key(item.get("id")) or _usable_key(item.get("name"))
    if key is None:
        return None
    value = item.get("value")
    values = item.get("values")
    if value is None and isinstance(values, list) and values:
        value = values[0]
    return MetadataEntry(id=key, value=_as_text(value))


def parse_metadata(raw: object) -> list[MetadataEntry] | None:
    """Parse metadata input into canonical {id, value} entries.

    Accepts JSON text, or an already decoded list or mapping. A list keeps the
    elements that carry a key; a mapping becomes one entry per pair. Returns
    None (metadata omitted) for empty or malformed input. Never raises.
    """
    parsed: object = raw
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            parsed = json.loads(text)
        except (ValueError, RecursionError):
            logger.warning("ignoring metadata that is not valid JSON (%d chars)", len(text))
            return None

    if isinstance(parsed, list):
        entries = [e for e in (_entry_from_item(item) for item in parsed) if e is not None]
        dropped = len(parsed) - len(entries)
        if dropped:
            logger.warning("dropped %d metadata item(s) without a key", dropped)
    elif isinstance(parsed, dict):
        entries = []
        for k, v in parsed.items():
            key = _usable_key(k)
            if key is not None:
                entries.append(MetadataEntry(id=key, value=_as_text(v)))
    else:
        return None
    return entries or None


def make_client_job_id() -> str:
    """Millisecond timestamp plus a random suffix, unique within the process."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}"


def build_job_request(inputs: ConnectorInputs, job_id: str | None = None) -> JobRequest:
    """Assemble the POST /job payload from validated node inputs."""
    return JobRequest(
        id=job_id or make_client_job_id(),
        name=job_name_from_path(inputs.file_path),
        target_name=inputs.target_name,
        target_id=inputs.target_id,
        file_path=inputs.file_path,
        priority=inputs.priority,
        metadata_set_name=inputs.metadata_set_name,
        metadata=parse_metadata(inputs.metadata),
    )
