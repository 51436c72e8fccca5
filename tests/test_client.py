# tests/test_client.py
import pytest
import requests

from admin_agent.client import AgentChatClient, ERROR_REPLY, EMPTY_REPLY
from admin_agent import cli


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_send_appends_user_and_agent_turns():
    session = FakeSession(FakeResponse(payload={"reply": "Found 0 offline machines."}))
    client = AgentChatClient(url="http://agent/api/agent-chat", session=session)

    assert client.send("offline machines?") == "Found 0 offline machines."
    assert client.history == [
        {"role": "user", "content": "offline machines?"},
        {"role": "agent", "content": "Found 0 offline machines."},
    ]
    # prior history only; the query travels separately
    assert session.posts[0]["json"] == {"query": "offline machines?", "history": []}


def test_second_turn_sends_prior_history():
    session = FakeSession(FakeResponse(payload={"reply": "one"}), FakeResponse(payload={"reply": "two"}))
    client = AgentChatClient(session=session)
    client.send("first")
    client.send("second")
    assert session.posts[1]["json"]["history"] == [
        {"role": "user", "content": "first"},
        {"role": "agent", "content": "one"},
    ]


@pytest.mark.parametrize("outcome", [
    FakeResponse(status_code=500, payload={"error": "Internal server error"}),
    requests.ConnectionError("connection refused"),
])
def test_network_failure_adds_one_apology_turn(outcome):
    session = FakeSession(FakeResponse(payload={"reply": "hello"}), outcome)
    client = AgentChatClient(session=session)
    client.send("hi")

    assert client.send("add a laundromat") == ERROR_REPLY
    assert client.history[-2:] == [
        {"role": "user", "content": "add a laundromat"},
        {"role": "agent", "content": ERROR_REPLY},
    ]
    assert [t["role"] for t in client.history] == ["user", "agent", "user", "agent"]
    assert len(session.posts) == 2


def test_missing_reply_field():
    client = AgentChatClient(session=FakeSession(FakeResponse(payload={})))
    assert client.send("hello") == EMPTY_REPLY


def test_blank_input_is_ignored():
    session = FakeSession()
    client = AgentChatClient(session=session)
    assert client.send("   ") is None
    assert client.history == []
    assert session.posts == []


def test_cli_loop_handles_commands():
    session = FakeSession(FakeResponse(payload={"reply": "System is healthy."}))
    client = AgentChatClient(session=session)
    lines = iter(["", "health?", "/clear", "exit"])
    out = []

    cli.run(client, read=lambda prompt: next(lines), write=out.append)

    assert "System is healthy." in out
    assert "Conversation cleared." in out
    assert client.history == []
    assert len(session.posts) == 1


def test_cli_exits_on_eof():
    def read(prompt):
        raise EOFError

    out = []
    cli.run(AgentChatClient(session=FakeSession()), read=read, write=out.append)
    assert out[0] == cli.BANNER


@pytest.mark.parametrize("payload", [["not", "an", "object"], "text", None])
def test_non_object_body_gets_empty_reply(payload):
    client = AgentChatClient(session=FakeSession(FakeResponse(payload=payload)))
    assert client.send("hello") == EMPTY_REPLY
    assert client.history[-1] == {"role": "agent", "content": EMPTY_REPLY}


class ReentrantSession(FakeSession):
    """Tries a second send while the first request is still open."""

    def __init__(self, *outcomes):
        super().__init__(*outcomes)
        self.client = None
        self.nested_errors = []

    def post(self, url, json=None, timeout=None):
        assert self.client.pending
        try:
            self.client.send("second question")
        except RuntimeError as e:
            self.nested_errors.append(e)
        return super().post(url, json=json, timeout=timeout)


def test_one_request_in_flight():
    session = ReentrantSession(FakeResponse(payload={"reply": "first answer"}))
    client = AgentChatClient(session=session)
    session.client = client

    assert client.send("first question") == "first answer"
    assert len(session.nested_errors) == 1
    assert "already in flight" in str(session.nested_errors[0])
    assert len(session.posts) == 1
    assert client.history == [
        {"role": "user", "content": "first question"},
        {"role": "agent", "content": "first answer"},
    ]
    assert not client.pending
