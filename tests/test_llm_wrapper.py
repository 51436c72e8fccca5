# tests/test_llm_wrapper.py
import json
from types import SimpleNamespace

import pytest

import admin_agent.llm_wrapper as llm_wrapper
from admin_agent.errors import ConfigurationError, CompletionServiceError


FUNCTIONS = [{"name": "getSystemHealth", "description": "health", "parameters": {"type": "object", "properties": {}}}]


@pytest.fixture
def live_openai(monkeypatch):
    monkeypatch.setattr(llm_wrapper, "MOCK_OPENAI", False)
    monkeypatch.setattr(llm_wrapper, "LLM_PROVIDER", "openai")
    monkeypatch.setattr(llm_wrapper, "OPENAI_API_KEY", "sk-test")


def fake_openai_class(response=None, error=None, seen=None):
    class FakeCompletions:
        def create(self, **kwargs):
            if seen is not None:
                seen.update(kwargs)
            if error is not None:
                raise error
            return response

    class FakeOpenAI:
        def __init__(self, api_key=None, timeout=None):
            self.chat = SimpleNamespace(completions=FakeCompletions())

    return FakeOpenAI


def test_mock_echoes_latest_user_turn():
    out = llm_wrapper._mock_llm([{"role": "system", "content": "s"}, {"role": "user", "content": "hello"}], model="m")
    assert out["text"] == "hello"
    assert out["function_call"] is None


def test_check_credentials(monkeypatch):
    monkeypatch.setattr(llm_wrapper, "MOCK_OPENAI", False)
    monkeypatch.setattr(llm_wrapper, "LLM_PROVIDER", "anthropic")
    monkeypatch.setattr(llm_wrapper, "ANTHROPIC_API_KEY", "")
    with pytest.raises(ConfigurationError, match="Missing Anthropic API key"):
        llm_wrapper.check_credentials()


def test_openai_function_call_is_normalized(live_openai, monkeypatch):
    import openai

    message = SimpleNamespace(content=None, function_call=SimpleNamespace(name="getSystemHealth", arguments="{}"))
    response = SimpleNamespace(id="resp-1", choices=[SimpleNamespace(message=message, finish_reason="function_call")])
    seen = {}
    monkeypatch.setattr(openai, "OpenAI", fake_openai_class(response=response, seen=seen))

    out = llm_wrapper.call_llm([{"role": "user", "content": "health?"}], functions=FUNCTIONS)
    assert out["function_call"] == {"name": "getSystemHealth", "arguments": "{}"}
    assert out["finish_reason"] == "function_call"
    assert seen["functions"] == FUNCTIONS
    assert seen["temperature"] == 0.2 and seen["max_tokens"] == 512


def test_openai_plain_call_omits_functions(live_openai, monkeypatch):
    import openai

    message = SimpleNamespace(content="All good.", function_call=None)
    response = SimpleNamespace(id="resp-2", choices=[SimpleNamespace(message=message, finish_reason="stop")])
    seen = {}
    monkeypatch.setattr(openai, "OpenAI", fake_openai_class(response=response, seen=seen))

    out = llm_wrapper.call_llm([{"role": "user", "content": "hi"}])
    assert out["text"] == "All good."
    assert out["function_call"] is None
    assert "functions" not in seen


def test_openai_error_keeps_raw_body(live_openai, monkeypatch):
    import openai

    class UpstreamError(Exception):
        status_code = 401
        response = SimpleNamespace(text='{"error": "invalid api key"}')

    monkeypatch.setattr(openai, "OpenAI", fake_openai_class(error=UpstreamError("401")))
    with pytest.raises(CompletionServiceError) as exc:
        llm_wrapper.call_llm([{"role": "user", "content": "hi"}])
    assert exc.value.message == '{"error": "invalid api key"}'
    assert exc.value.status_code == 401


def test_anthropic_message_translation():
    messages = [
        {"role": "system", "content": "be helpful"},
        {"role": "user", "content": "health?"},
        {"role": "assistant", "content": None, "function_call": {"name": "getSystemHealth", "arguments": "{}"}},
        {"role": "function", "name": "getSystemHealth", "content": "System is healthy."},
    ]
    system, chat = llm_wrapper._to_anthropic_messages(messages)
    assert system == "be helpful"
    assert [m["role"] for m in chat] == ["user", "assistant", "user"]
    assert "getSystemHealth" in chat[1]["content"]
    assert chat[2]["content"] == "Result of getSystemHealth: System is healthy."


def test_anthropic_tool_use_is_normalized(monkeypatch):
    import anthropic

    monkeypatch.setattr(llm_wrapper, "ANTHROPIC_API_KEY", "sk-ant")
    blocks = [SimpleNamespace(type="text", text="Checking."),
              SimpleNamespace(type="tool_use", name="addUser", input={"full_name": "Ana", "email": "a@x.io"})]
    seen = {}

    class FakeMessages:
        def create(self, **kwargs):
            seen.update(kwargs)
            return SimpleNamespace(id="msg-1", content=blocks, stop_reason="tool_use")

    class FakeAnthropic:
        def __init__(self, api_key=None, timeout=None):
            self.messages = FakeMessages()

    monkeypatch.setattr(anthropic, "Anthropic", FakeAnthropic)
    out = llm_wrapper._real_anthropic_chat([{"role": "system", "content": "s"}, {"role": "user", "content": "add Ana"}],
                                           model="claude", functions=FUNCTIONS)
    assert out["finish_reason"] == "function_call"
    assert out["function_call"]["name"] == "addUser"
    assert json.loads(out["function_call"]["arguments"]) == {"full_name": "Ana", "email": "a@x.io"}
    assert out["text"] == "Checking."
    assert seen["tools"][0]["input_schema"] == FUNCTIONS[0]["parameters"]
    assert seen["system"] == "s"
