# admin_agent/llm_wrapper.py
"""
Centralized LLM wrapper with function calling. Supports OpenAI and Anthropic backends.
Returns a standardized dict:
{
  "text": "<assistant text or None>",
  "function_call": {"name": "...", "arguments": "<json string>"} | None,
  "finish_reason": "stop" | "function_call" | ...,
  "model": "<model used>",
  "response_id": "<model response id if available>",
  "raw": <raw response object>
}

Messages use the OpenAI chat shape, including the two turns the dispatcher adds
after running a function:
  {"role": "assistant", "content": None, "function_call": {"name", "arguments"}}
  {"role": "function", "name": "...", "content": "..."}
The Anthropic backend translates these on the way out.

Configuration (env vars):
  LLM_PROVIDER=openai|anthropic   (default: auto-detect based on available keys)
  OPENAI_API_KEY=...
  ANTHROPIC_API_KEY=...
  AGENT_LLM_MODEL=...             (default: depends on provider)
  LLM_TIMEOUT=30                  (seconds)
  MOCK_OPENAI=false               (set true for the offline mock backend)

Usage:
  from admin_agent.llm_wrapper import call_llm
  resp = call_llm(messages=..., functions=registry.function_schemas())
  if resp["function_call"]: ...
"""

import os
import json
import time
from typing import Dict, Any, Optional, List

from admin_agent.errors import ConfigurationError, CompletionServiceError

MOCK_OPENAI = os.getenv("MOCK_OPENAI", "false").lower() in ("1", "true", "yes")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()
LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", "30"))

# Auto-detect provider: explicit > anthropic if key present > openai
_explicit_provider = os.getenv("LLM_PROVIDER", "").strip().lower()
if _explicit_provider in ("anthropic", "claude"):
    LLM_PROVIDER = "anthropic"
elif _explicit_provider in ("openai", "gpt"):
    LLM_PROVIDER = "openai"
elif ANTHROPIC_API_KEY:
    LLM_PROVIDER = "anthropic"
elif OPENAI_API_KEY:
    LLM_PROVIDER = "openai"
else:
    LLM_PROVIDER = "openai"  # fallback; check_credentials reports the missing key

# Default models per provider
_ANTHROPIC_DEFAULT = "claude-sonnet-4-20250514"
_OPENAI_DEFAULT = "gpt-4o-mini"

DEFAULT_MODEL = os.getenv(
    "AGENT_LLM_MODEL",
    _ANTHROPIC_DEFAULT if LLM_PROVIDER == "anthropic" else _OPENAI_DEFAULT
)


def check_credentials():
    """Raise ConfigurationError when the active provider has no API key."""
    if MOCK_OPENAI:
        return
    if LLM_PROVIDER == "anthropic" and not ANTHROPIC_API_KEY:
        raise ConfigurationError("Missing Anthropic API key")
    if LLM_PROVIDER == "openai" and not OPENAI_API_KEY:
        raise ConfigurationError("Missing OpenAI API key")


def _upstream_error(e: Exception) -> CompletionServiceError:
    """Keep the provider's raw error body when there is one."""
    response = getattr(e, "response", None)
    status = getattr(e, "status_code", None)
    text = None
    if response is not None:
        try:
            text = response.text
        except Exception:
            text = None
    return CompletionServiceError(text or str(e), status_code=status)


# ---------------------------------------------------------------------------
# Anthropic backend
# ---------------------------------------------------------------------------
def _to_anthropic_messages(messages: List[Dict[str, Any]]):
    # Anthropic uses a separate system param, not a system message in messages list.
    # Function turns are flattened to text since the follow-up call carries no tools.
    system_text = ""
    chat_messages = []
    for m in messages:
        role = m["role"]
        if role == "system":
            system_text += (m.get("content") or "") + "\n"
        elif role == "function":
            chat_messages.append({
                "role": "user",
                "content": f"Result of {m.get('name')}: {m.get('content')}",
            })
        elif m.get("function_call"):
            fc = m["function_call"]
            chat_messages.append({
                "role": "assistant",
                "content": f"Calling {fc.get('name')} with arguments {fc.get('arguments') or '{}'}",
            })
        else:
            chat_messages.append({"role": role, "content": m.get("content") or ""})
    return system_text.strip(), chat_messages


def _real_anthropic_chat(messages: List[Dict[str, Any]], model: str,
                         functions: Optional[List[Dict[str, Any]]] = None,
                         max_tokens: int = 512, temperature: float = 0.2,
                         timeout: int = 30) -> Dict[str, Any]:
    from anthropic import Anthropic

    client = Anthropic(api_key=ANTHROPIC_API_KEY, timeout=timeout)
    system_text, chat_messages = _to_anthropic_messages(messages)

    kwargs = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": chat_messages,
    }
    if system_text:
        kwargs["system"] = system_text
    if functions:
        kwargs["tools"] = [
            {"name": f["name"], "description": f.get("description", ""), "input_schema": f["parameters"]}
            for f in functions
        ]

    resp = client.messages.create(**kwargs)

    text = ""
    function_call = None
    for block in resp.content:
        if getattr(block, "type", None) == "tool_use" and function_call is None:
            function_call = {"name": block.name, "arguments": json.dumps(block.input or {})}
        elif hasattr(block, "text"):
            text += block.text

    finish_reason = "function_call" if resp.stop_reason == "tool_use" and function_call else resp.stop_reason
    rid = getattr(resp, "id", None)
    return {"text": text or None, "function_call": function_call, "finish_reason": finish_reason,
            "model": model, "response_id": rid, "raw": resp}


# ---------------------------------------------------------------------------
# OpenAI backend
# ---------------------------------------------------------------------------
def _real_openai_chat_completion(messages: List[Dict[str, Any]], model: str,
                                  functions: Optional[List[Dict[str, Any]]] = None,
                                  max_tokens: int = 512, temperature: float = 0.2,
                                  timeout: int = 30) -> Dict[str, Any]:
    from openai import OpenAI
    client = OpenAI(api_key=OPENAI_API_KEY, timeout=timeout)
    kwargs = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if functions:
        kwargs["functions"] = functions
    resp = client.chat.completions.create(**kwargs)

    choices = getattr(resp, "choices", [])
    if not choices:
        return {"text": None, "function_call": None, "finish_reason": None,
                "model": model, "response_id": getattr(resp, "id", None), "raw": resp}

    choice = choices[0]
    message = choice.message
    function_call = None
    fc = getattr(message, "function_call", None)
    if choice.finish_reason == "function_call" and fc is not None:
        function_call = {"name": fc.name, "arguments": fc.arguments}
    rid = getattr(resp, "id", None)
    return {"text": message.content, "function_call": function_call, "finish_reason": choice.finish_reason,
            "model": model, "response_id": rid, "raw": resp}


# ---------------------------------------------------------------------------
# Mock backend
# ---------------------------------------------------------------------------
def _mock_llm(messages: List[Dict[str, Any]], model: str, **kwargs) -> Dict[str, Any]:
    """
    Deterministic mock used in dev/tests. Never calls functions; echoes the latest
    function result if there is one, else the latest user message.
    """
    text = ""
    for m in reversed(messages):
        if m["role"] in ("function", "user"):
            text = (m.get("content") or "")[:1000]  # truncated
            break
    rid = f"mock-{model}-{int(time.time() * 1000)}"
    return {"text": text, "function_call": None, "finish_reason": "stop",
            "model": model, "response_id": rid, "raw": {"mock": True}}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def call_llm(messages: List[Dict[str, Any]], functions: Optional[List[Dict[str, Any]]] = None,
             model: Optional[str] = None, max_tokens: int = 512, temperature: float = 0.2,
             timeout: Optional[int] = None) -> Dict[str, Any]:
    """
    messages: list of chat turns (see module docstring)
    functions: function schemas to attach, or None for a plain completion
    Raises ConfigurationError (no key) or CompletionServiceError (upstream failure).
    """
    model = model or DEFAULT_MODEL
    timeout = timeout or LLM_TIMEOUT
    if MOCK_OPENAI:
        return _mock_llm(messages, model=model, functions=functions, max_tokens=max_tokens,
                         temperature=temperature, timeout=timeout)
    check_credentials()
    try:
        if LLM_PROVIDER == "anthropic":
            return _real_anthropic_chat(messages, model=model, functions=functions,
                                        max_tokens=max_tokens,
                                        temperature=temperature,
                                        timeout=timeout)
        else:
            return _real_openai_chat_completion(messages, model=model, functions=functions,
                                                max_tokens=max_tokens,
                                                temperature=temperature,
                                                timeout=timeout)
    except Exception as e:
        raise _upstream_error(e) from e
