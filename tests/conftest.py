# tests/conftest.py
import os
import tempfile

# Point the app's module-level store at a scratch DB and keep the LLM mocked,
# BEFORE anything imports admin_agent.app.
_SCRATCH = tempfile.mkdtemp(prefix="admin-agent-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_SCRATCH}/app.db"
os.environ["MOCK_OPENAI"] = "true"

import pytest

import admin_agent.llm_wrapper as llm_wrapper
from admin_agent.db import Store


@pytest.fixture
def store(tmp_path):
    s = Store(f"sqlite:///{tmp_path}/test.db")
    s.init_db()
    yield s
    s.dispose()


@pytest.fixture
def laundromat(store):
    """Parent row for machines seeded with laundromat_id="lm-1"."""
    from admin_agent.models import Laundromat

    with store.session_scope() as session:
        session.add(Laundromat(id="lm-1", name="Suds", address="1 A St", borough="Queens"))
    return "lm-1"


def text_response(text):
    return {"text": text, "function_call": None, "finish_reason": "stop",
            "model": "fake", "response_id": "fake-1", "raw": {}}


def function_response(name, arguments="{}", text=None):
    return {"text": text, "function_call": {"name": name, "arguments": arguments},
            "finish_reason": "function_call", "model": "fake", "response_id": "fake-1", "raw": {}}


class FakeLLM:
    """Replays queued responses and records every call."""

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def __call__(self, messages, functions=None, model=None, max_tokens=512, temperature=0.2, timeout=None):
        self.calls.append({"messages": [dict(m) for m in messages], "functions": functions,
                           "max_tokens": max_tokens, "temperature": temperature})
        return self.responses.pop(0)


@pytest.fixture
def fake_llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm_wrapper, "call_llm", fake)
    monkeypatch.setattr(llm_wrapper, "check_credentials", lambda: None)
    return fake
