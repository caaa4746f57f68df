import pytest
import json
from fastapi.testclient import TestClient

from linux_sim.main import app
from linux_sim.schemas.commands import CommandExecuted
from linux_sim.schemas.filesystem import Statistics
from linux_sim.websocket import ConnectionManager


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def manager():
    """Fresh connection manager for each test"""
    return ConnectionManager()


def test_websocket_connection(client):
    """Test that WebSocket connection can be established"""
    with client.websocket_connect("/ws") as websocket:
        assert websocket is not None


def test_connection_manager_starts_empty():
    """Test ConnectionManager starts with no connections"""
    manager = ConnectionManager()
    assert len(manager.active_connections) == 0


@pytest.mark.asyncio
async def test_connection_manager_broadcast(manager):
    """Test ConnectionManager can broadcast messages"""
    class MockWebSocket:
        def __init__(self):
            self.sent_messages = []

        async def send_text(self, message: str):
            self.sent_messages.append(message)

    mock_ws = MockWebSocket()
    manager.active_connections[mock_ws] = None

    await manager.broadcast("command_executed", {"session_id": "s1"})

    assert len(mock_ws.sent_messages) == 1
    sent_data = json.loads(mock_ws.sent_messages[0])
    assert sent_data["type"] == "command_executed"
    assert sent_data["data"]["session_id"] == "s1"


@pytest.mark.asyncio
async def test_connection_manager_removes_failed_connections(manager):
    """Test that failed connections are removed from the list"""
    class FailingWebSocket:
        async def send_text(self, message: str):
            raise Exception("Connection failed")

    manager.active_connections[FailingWebSocket()] = None

    await manager.broadcast("command_executed", {"session_id": "s1"})

    assert len(manager.active_connections) == 0


@pytest.mark.asyncio
async def test_connection_manager_connect(manager):
    """Test connect accepts and stores the socket"""
    class AcceptingWebSocket:
        accepted = False

        async def accept(self):
            self.accepted = True

    ws = AcceptingWebSocket()
    await manager.connect(ws)

    assert ws.accepted
    assert manager.active_connections == {ws: None}


def test_connection_manager_disconnect(manager):
    """Test that disconnect removes connection"""
    class MockWebSocket:
        pass

    mock_ws = MockWebSocket()
    manager.active_connections[mock_ws] = None

    manager.disconnect(mock_ws)
    assert len(manager.active_connections) == 0

    # Disconnecting twice is harmless
    manager.disconnect(mock_ws)


class RecordingWebSocket:
    def __init__(self):
        self.sent_messages = []

    async def send_text(self, message: str):
        self.sent_messages.append(json.loads(message))


@pytest.mark.asyncio
async def test_broadcast_reaches_only_watchers(manager):
    """Test that session-scoped messages skip displays watching another session"""
    watching_s1 = RecordingWebSocket()
    watching_s2 = RecordingWebSocket()
    watching_all = RecordingWebSocket()
    manager.active_connections[watching_s1] = "s1"
    manager.active_connections[watching_s2] = "s2"
    manager.active_connections[watching_all] = None

    await manager.broadcast("command_executed", {"session_id": "s1"}, session_id="s1")

    assert len(watching_s1.sent_messages) == 1
    assert watching_s2.sent_messages == []
    assert len(watching_all.sent_messages) == 1


@pytest.mark.asyncio
async def test_broadcast_command(manager):
    """Test that a command event is sent as a typed command_executed message"""
    ws = RecordingWebSocket()
    manager.active_connections[ws] = "s1"

    event = CommandExecuted(
        session_id="s1",
        command="mkdir notes",
        error=False,
        clear=False,
        current_path="/home/user",
        statistics=Statistics(directory_count=7, file_count=3)
    )
    await manager.broadcast_command(event)

    assert ws.sent_messages == [{
        "type": "command_executed",
        "data": {
            "session_id": "s1",
            "command": "mkdir notes",
            "error": False,
            "clear": False,
            "current_path": "/home/user",
            "statistics": {"directory_count": 7, "file_count": 3}
        }
    }]
