"""Unit tests for EvsConnector.run()."""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from conftest import FakeClock
from evsconnector.services.connector import EvsConnector
from evsconnector.services.errors import (
    JobCreationError,
    JobFailedError,
    JobTimeoutError,
    TransportError,
    ValidationError,
)
from evsconnector.services.host import RecordingHost

_BASE = "http://10.0.0.1:8084/evsconn/v1"


def _inputs(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "Host URL": "http://10.0.0.1:8084/",
        "Target Name": "XSquare",
        "Target ID": "xq-target-01",
        "File Path": "\\\\XSTORE\\TEMP\\clip01.mov",
    }
    values.update(overrides)
    return values


def _status(status: str, progress: float) -> httpx.Response:
    return httpx.Response(200, json={"status": status, "progress": progress})


def _connector(client: MagicMock, clock: FakeClock) -> EvsConnector:
    return EvsConnector(client, clock=clock, sleep=clock.sleep)


class TestEvsConnectorRun:
    def test_submits_polls_and_completes(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-1", "status": "EVS Checkin"})
        mock_httpx_client.get.side_effect = [
            _status("RUNNING", 10),
            _status("RUNNING", 10),
            _status("RUNNING", 45),
            _status("RUNNING", 100),
        ]
        host = RecordingHost(inputs=_inputs())

        outcome = _connector(mock_httpx_client, fake_clock).run(host)

        assert outcome["kind"] == "success"
        assert [e["percent"] for e in host.progress] == [10, 45, 100]
        assert host.outputs["Status code"] == 200
        assert host.outputs["Job Id"] == "srv-1"
        assert host.outputs["Job Progress"] == 100
        assert host.outputs["Progress"] == 100
        assert host.outputs["Job Status"] == "RUNNING"
        assert mock_httpx_client.post.call_args.args[0] == f"{_BASE}/job"
        assert mock_httpx_client.get.call_args.args[0] == f"{_BASE}/job/status/srv-1"

    def test_records_exact_request(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={})
        mock_httpx_client.get.return_value = _status("COMPLETED", 100)
        host = RecordingHost(inputs=_inputs(**{"Metadata": '{"show":"Sports"}', "XSquare Priority": "5"}))

        _connector(mock_httpx_client, fake_clock).run(host)

        request = json.loads(str(host.outputs["Request"]))
        assert request["name"] == "clip01.mov"
        assert request["xsquarePriority"] == "5"
        assert request["metadata"] == [{"id": "show", "value": "Sports"}]
        assert "metadatasetName" not in request
        assert host.outputs["Job Id"] == request["id"]

    @pytest.mark.parametrize("metadata", [42, True, 3.5])
    def test_scalar_metadata_is_left_out(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock, metadata: object
    ) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-8"})
        mock_httpx_client.get.return_value = _status("COMPLETED", 100)
        host = RecordingHost(inputs=_inputs(Metadata=metadata))

        outcome = _connector(mock_httpx_client, fake_clock).run(host)

        assert outcome["kind"] == "success"
        assert "metadata" not in json.loads(str(host.outputs["Request"]))

    def test_request_output_is_the_posted_body(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={})
        mock_httpx_client.get.return_value = _status("COMPLETED", 100)
        host = RecordingHost(inputs=_inputs(Metadata='[{"id":"title","value":"Clip é"}]'))

        _connector(mock_httpx_client, fake_clock).run(host)

        sent = mock_httpx_client.post.call_args.kwargs["content"]
        assert sent == str(host.outputs["Request"]).encode("utf-8")

    def test_evs_checkin_completes_by_default(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-9"})
        mock_httpx_client.get.side_effect = [_status("Transferring", 0), _status("EVS Checkin", 0)]
        host = RecordingHost(inputs=_inputs())

        outcome = _connector(mock_httpx_client, fake_clock).run(host)

        assert outcome["kind"] == "success"
        assert mock_httpx_client.get.call_count == 2
        assert host.outputs["Job Status"] == "EVS Checkin"

    def test_missing_status_endpoint_completes_with_creation_outputs(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock
    ) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-10"})
        mock_httpx_client.get.return_value = httpx.Response(404, text="Not Found")
        host = RecordingHost(inputs=_inputs(**{"Timeout As Failure": True}))

        outcome = _connector(mock_httpx_client, fake_clock).run(host)

        assert outcome["kind"] == "success"
        assert mock_httpx_client.get.call_count == 1
        assert host.outputs["Job Status"] == "UNKNOWN"
        assert host.outputs["Poll Body"] == "Not Found"

    def test_creation_error_keeps_recorded_outputs(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock
    ) -> None:
        mock_httpx_client.post.return_value = httpx.Response(500, json={"error": "disk full"})
        host = RecordingHost(inputs=_inputs())

        with pytest.raises(JobCreationError) as exc_info:
            _connector(mock_httpx_client, fake_clock).run(host)

        assert exc_info.value.status_code == 500
        assert host.outputs["Status code"] == 500
        assert host.outputs["Headers"]["content-type"] == "application/json"  # type: ignore[index]
        assert "disk full" in str(host.outputs["Body"])
        assert host.outputs["Run time"] == 0
        mock_httpx_client.get.assert_not_called()

    def test_missing_input_fails_before_any_request(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock
    ) -> None:
        host = RecordingHost(inputs=_inputs(**{"File Path": ""}))

        with pytest.raises(ValidationError, match="File Path is required"):
            _connector(mock_httpx_client, fake_clock).run(host)

        mock_httpx_client.post.assert_not_called()

    def test_invalid_timeout_is_a_validation_error(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock
    ) -> None:
        host = RecordingHost(inputs=_inputs(**{"Timeout (s)": "soon"}))

        with pytest.raises(ValidationError, match="Timeout"):
            _connector(mock_httpx_client, fake_clock).run(host)

        mock_httpx_client.post.assert_not_called()

    def test_timeout_completes_with_last_observation_by_default(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock
    ) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-2"})
        mock_httpx_client.get.return_value = _status("RUNNING", 30)
        host = RecordingHost(inputs=_inputs(**{"Timeout (s)": 5}))
        start = fake_clock.now

        outcome = _connector(mock_httpx_client, fake_clock).run(host)

        assert outcome["kind"] == "timed_out"
        assert fake_clock.now - start == pytest.approx(5.0)
        assert host.outputs["Job Status"] == "RUNNING"
        assert host.outputs["Job Progress"] == 30

    def test_timeout_as_failure_raises(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-3"})
        mock_httpx_client.get.return_value = _status("RUNNING", 30)
        host = RecordingHost(inputs=_inputs(**{"Timeout (s)": "5", "Timeout As Failure": True}))

        with pytest.raises(JobTimeoutError, match="srv-3"):
            _connector(mock_httpx_client, fake_clock).run(host)

        assert host.outputs["Job Status"] == "RUNNING"

    def test_failed_job_raises(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-4"})
        mock_httpx_client.get.side_effect = [_status("RUNNING", 20), _status("FAILED", 20)]
        host = RecordingHost(inputs=_inputs())

        with pytest.raises(JobFailedError, match="srv-4"):
            _connector(mock_httpx_client, fake_clock).run(host)

        assert host.outputs["Job Status"] == "FAILED"

    def test_poll_transport_error_stops_job_when_enabled(
        self, mock_httpx_client: MagicMock, fake_clock: FakeClock
    ) -> None:
        create = httpx.Response(200, json={"id": "srv-5"})
        mock_httpx_client.post.side_effect = [create, httpx.ConnectError("still down")]
        mock_httpx_client.get.side_effect = httpx.ConnectError("connection reset")
        host = RecordingHost(inputs=_inputs(**{"Stop Job On Error": "true"}))

        with pytest.raises(TransportError, match="connection reset"):
            _connector(mock_httpx_client, fake_clock).run(host)

        assert mock_httpx_client.post.call_count == 2
        assert mock_httpx_client.post.call_args.args[0] == f"{_BASE}/job/stop/srv-5"

    def test_poll_transport_error_without_stop(self, mock_httpx_client: MagicMock, fake_clock: FakeClock) -> None:
        mock_httpx_client.post.return_value = httpx.Response(200, json={"id": "srv-6"})
        mock_httpx_client.get.side_effect = httpx.ConnectError("connection reset")
        host = RecordingHost(inputs=_inputs())

        with pytest.raises(TransportError):
            _connector(mock_httpx_client, fake_clock).run(host)

        mock_httpx_client.post.assert_called_once()

    def test_opens_and_closes_own_client(self, fake_clock: FakeClock) -> None:
        client = MagicMock()
        client.post.return_value = httpx.Response(200, json={"id": "srv-7"})
        client.get.return_value = _status("COMPLETED", 100)
        host = RecordingHost(inputs=_inputs())

        with patch("evsconnector.services.connector.httpx.Client") as mock_client_cls:
            mock_client_cls.return_value.__enter__.return_value = client
            EvsConnector(clock=fake_clock, sleep=fake_clock.sleep).run(host)

        mock_client_cls.return_value.__exit__.assert_called_once()
        assert host.outputs["Job Id"] == "srv-7"
