# pyright: reportAny=false
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

from nodesup.exceptions import (
    ActorStoppedError,
    AlreadyRunningError,
    ConfigParseError,
    LogReadError,
    NotRunningError,
    ProcessSpawnError,
    RpcParseError,
    RpcTransportError,
)
from nodesup.supervisor import ControlClient, NodeStatus, create_control_router


@pytest.fixture
def control_client(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(ControlClient, instance=True)


@pytest.fixture
def http(control_client: MagicMock) -> TestClient:
    app = FastAPI()
    app.include_router(create_control_router(control_client))
    return TestClient(app)


class TestRunEndpoint:
    def test_starts_node(self, http: TestClient, control_client: MagicMock) -> None:
        response = http.post("/node/run", json={"env": "A=1", "args": "--dev"})

        assert response.status_code == 200
        assert response.json() == {"message": "Node started"}
        control_client.run.assert_awaited_once_with("A=1", "--dev")

    def test_body_fields_default_to_empty(
        self, http: TestClient, control_client: MagicMock
    ) -> None:
        response = http.post("/node/run", json={})

        assert response.status_code == 200
        control_client.run.assert_awaited_once_with("", "")

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (ConfigParseError("bad env", token="X"), 400),
            (AlreadyRunningError("Node is already running"), 409),
            (ProcessSpawnError("Failed to launch cargo"), 500),
            (ActorStoppedError("Control actor has stopped"), 500),
        ],
    )
    def test_maps_errors(
        self,
        http: TestClient,
        control_client: MagicMock,
        error: Exception,
        status_code: int,
    ) -> None:
        control_client.run.side_effect = error

        response = http.post("/node/run", json={})

        assert response.status_code == status_code
        assert response.json() == {"detail": str(error)}


class TestStopEndpoint:
    def test_stops_node(self, http: TestClient, control_client: MagicMock) -> None:
        response = http.post("/node/stop")

        assert response.status_code == 200
        assert response.json() == {"message": "Node stopped"}
        control_client.stop.assert_awaited_once_with()

    def test_not_running_is_conflict(
        self, http: TestClient, control_client: MagicMock
    ) -> None:
        control_client.stop.side_effect = NotRunningError("Node is not running")

        response = http.post("/node/stop")

        assert response.status_code == 409


class TestStatusEndpoint:
    @pytest.mark.parametrize("node_status", list(NodeStatus))
    def test_reports_status(
        self, http: TestClient, control_client: MagicMock, node_status: NodeStatus
    ) -> None:
        control_client.status.return_value = node_status

        response = http.get("/node/status")

        assert response.status_code == 200
        assert response.json() == {"status": node_status.value}


class TestLogEndpoint:
    def test_returns_plain_text(
        self, http: TestClient, control_client: MagicMock
    ) -> None:
        control_client.get_log.return_value = "line 1\nline 2\n"

        response = http.get("/node/log")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "line 1\nline 2\n"

    def test_missing_log_is_not_found(
        self, http: TestClient, control_client: MagicMock
    ) -> None:
        control_client.get_log.side_effect = LogReadError.from_os_error(
            FileNotFoundError(2, "No such file or directory"), path=Path("node.log")
        )

        response = http.get("/node/log")

        assert response.status_code == 404

    def test_unreadable_log_is_server_error(
        self, http: TestClient, control_client: MagicMock
    ) -> None:
        control_client.get_log.side_effect = LogReadError.from_os_error(
            PermissionError(13, "Permission denied"), path=Path("node.log")
        )

        response = http.get("/node/log")

        assert response.status_code == 500


class TestRpcEndpoint:
    def test_returns_node_response(
        self, http: TestClient, control_client: MagicMock
    ) -> None:
        control_client.call_rpc.return_value = {
            "error": {"code": -32601, "message": "Method not found"},
            "id": 1,
        }

        response = http.post("/node/rpc", json={"method": "nope", "arguments": [1]})

        assert response.status_code == 200
        assert response.json()["error"]["code"] == -32601
        control_client.call_rpc.assert_awaited_once_with("nope", [1])

    @pytest.mark.parametrize(
        "error",
        [
            RpcTransportError("Connection refused", url="http://127.0.0.1:8080/"),
            RpcParseError("JSON parse failed expected value"),
        ],
    )
    def test_forwarding_failures_are_bad_gateway(
        self, http: TestClient, control_client: MagicMock, error: Exception
    ) -> None:
        control_client.call_rpc.side_effect = error

        response = http.post("/node/rpc", json={"method": "get_info"})

        assert response.status_code == 502
        assert response.json() == {"detail": str(error)}

    def test_method_is_required(self, http: TestClient) -> None:
        response = http.post("/node/rpc", json={"arguments": []})

        assert response.status_code == 422
