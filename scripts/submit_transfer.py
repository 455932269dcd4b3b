"""Submit one EVS transfer job from the command line and wait for it.

Usage:
    python scripts/submit_transfer.py --file-path /mnt/xstore/temp/clip01.mov
        --target-name XSquare --target-id xq-target-01 [--host-url URL] [--timeout 120]

Requires the evsconnector package to be installed (pip install -e .).
--host-url defaults to EVS_HOST_URL, read from the environment or a .env file
in the working directory. Prints progress while polling and the node outputs
as JSON at the end. Exits with status 1 when the transfer fails.
"""

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from evsconnector.schemas.job import ConnectorInputs
from evsconnector.services.connector import EvsConnector
from evsconnector.services.errors import ConnectorError
from evsconnector.services.host import RecordingHost
from evsconnector.services.types import ProgressEvent


def _print_progress(event: ProgressEvent) -> None:
    print(f"  {event['percent']:3d}%  {event['status'] or '-'}")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submit a transfer job to the EVS Connector.")
    parser.add_argument("--host-url", default=os.environ.get("EVS_HOST_URL", ""), help="EVS Connector base URL")
    parser.add_argument("--target-name", required=True)
    parser.add_argument("--target-id", required=True)
    parser.add_argument("--file-path", required=True, help="Path of the file to transfer")
    parser.add_argument("--priority", default=None, help="XSquare priority")
    parser.add_argument("--metadata-set-name", default=None)
    parser.add_argument("--metadata", default=None, help="Metadata JSON (array of {id, value} or a key-value map)")
    parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to poll before giving up")
    parser.add_argument(
        "--timeout-as-failure",
        action="store_true",
        help="Exit with an error when the timeout is reached.",
    )
    parser.add_argument("--poll-interval", type=float, default=None, help="Seconds between status requests")
    parser.add_argument("--completion-progress", type=float, default=100.0)
    parser.add_argument("--completion-status", default=None)
    parser.add_argument(
        "--stop-job-on-error",
        action="store_true",
        help="Ask the service to stop the job when polling fails.",
    )
    return parser.parse_args()


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")
    args = _parse_args()

    values: dict[str, object] = {
        "host_url": args.host_url,
        "target_name": args.target_name,
        "target_id": args.target_id,
        "file_path": args.file_path,
        "priority": args.priority,
        "metadata_set_name": args.metadata_set_name,
        "metadata": args.metadata,
        "timeout_seconds": args.timeout,
        "timeout_as_failure": args.timeout_as_failure,
        "poll_interval_seconds": args.poll_interval,
        "completion_progress": args.completion_progress,
        "completion_status": args.completion_status,
        "stop_job_on_error": args.stop_job_on_error,
    }
    try:
        inputs = ConnectorInputs.from_values(values)
    except ValueError as exc:
        print(f"Invalid arguments: {exc}", file=sys.stderr)
        sys.exit(2)

    host = RecordingHost(inputs=inputs.as_input_values(), on_progress=_print_progress)
    failed = False
    try:
        EvsConnector().run(host)
    except ConnectorError as exc:
        print(f"Transfer failed: {exc}", file=sys.stderr)
        failed = True

    print(json.dumps(host.outputs, indent=2, ensure_ascii=False, default=str))
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
