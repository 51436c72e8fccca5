# admin_agent/dispatcher.py
import os
import time
from enum import Enum
from typing import Dict, Any, List, Optional, Sequence, Union

# Import modules (not bare functions) so monkeypatching in tests works correctly
import admin_agent.llm_wrapper as _llm
from admin_agent import monitoring
from admin_agent import registry
from admin_agent.db import Store
from admin_agent.errors import HandlerError, InvalidArgumentsError
from admin_agent.schemas import ChatTurn

SYSTEM_PROMPT = (
    "You are an agentic admin assistant for a laundromat platform. "
    "Answer questions, execute admin actions, and help the user manage the system."
)

ACTION_COMPLETED = "Action completed."
NO_RESPONSE = "Sorry, I could not generate a response."

AGENT_TEMPERATURE = float(os.getenv("AGENT_TEMPERATURE", "0.2"))
AGENT_MAX_TOKENS = int(os.getenv("AGENT_MAX_TOKENS", "512"))

# client-side role name -> completion service role name
_ROLE_MAP = {"agent": "assistant"}


class DispatchState(str, Enum):
    AWAITING_FIRST_RESPONSE = "awaiting-first-response"
    EXECUTING_FUNCTION = "executing-function"
    AWAITING_FINAL_RESPONSE = "awaiting-final-response"


Turn = Union[ChatTurn, Dict[str, Any]]


def build_messages(query: str, history: Optional[Sequence[Turn]] = None) -> List[Dict[str, Any]]:
    """System instruction, prior turns (agent -> assistant), then the new user turn."""
    messages: List[Dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
    for turn in history or []:
        if isinstance(turn, ChatTurn):
            role, content = turn.role, turn.content
        else:
            role, content = turn.get("role"), turn.get("content")
        messages.append({"role": _ROLE_MAP.get(role, role), "content": content})
    messages.append({"role": "user", "content": query})
    return messages


class AgentDispatcher:
    """
    One user turn = at most two completion calls and one function call.

    awaiting-first-response -> (function call signalled) executing-function
    -> awaiting-final-response -> reply
    """

    def __init__(self, store: Store, temperature: float = AGENT_TEMPERATURE,
                 max_tokens: int = AGENT_MAX_TOKENS, model: Optional[str] = None):
        self.store = store
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.model = model

    def _enter(self, state: DispatchState, **extra):
        monitoring.logger.debug("Dispatch state", extra={"state": state.value, **extra})

    def _complete(self, stage: str, messages: List[Dict[str, Any]],
                  functions: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        try:
            resp = _llm.call_llm(messages, functions=functions, model=self.model,
                                 max_tokens=self.max_tokens, temperature=self.temperature)
        except Exception:
            monitoring.inc_completion_call(stage, "fail")
            raise
        monitoring.inc_completion_call(stage, "success")
        return resp

    def _run_function(self, function: registry.AdminFunction, raw_arguments: Any) -> str:
        start = time.time()
        try:
            args = registry.decode_arguments(function, raw_arguments)
        except InvalidArgumentsError as e:
            monitoring.logger.warning("Rejected function arguments",
                                      extra={"function": function.value, "detail": e.detail})
            monitoring.observe_function_call(start, function.value, "invalid_arguments")
            return str(e)
        try:
            result = registry.invoke(self.store, function, args)
        except HandlerError:
            monitoring.observe_function_call(start, function.value, "error")
            raise
        monitoring.observe_function_call(start, function.value, "success")
        return result

    def handle_turn(self, query: str, history: Optional[Sequence[Turn]] = None) -> str:
        """
        Run one user turn and return the reply text.

        Raises ConfigurationError, CompletionServiceError or HandlerError; the HTTP
        layer maps each to an error response.
        """
        _llm.check_credentials()
        messages = build_messages(query, history)

        self._enter(DispatchState.AWAITING_FIRST_RESPONSE)
        first = self._complete("first", messages, functions=registry.function_schemas())

        function_call = first.get("function_call")
        if function_call:
            name = function_call.get("name")
            function = registry.lookup(name)
            if function is None:
                monitoring.logger.warning("Model requested unknown function", extra={"function": name})
                monitoring.inc_function_call(str(name), "unknown")
            else:
                self._enter(DispatchState.EXECUTING_FUNCTION, function=function.value)
                result = self._run_function(function, function_call.get("arguments"))

                self._enter(DispatchState.AWAITING_FINAL_RESPONSE, function=function.value)
                followup = messages + [
                    {"role": "assistant", "content": None, "function_call": {
                        "name": function.value,
                        "arguments": function_call.get("arguments") or "{}",
                    }},
                    {"role": "function", "name": function.value, "content": result},
                ]
                final = self._complete("final", followup)
                return final.get("text") or ACTION_COMPLETED

        return first.get("text") or NO_RESPONSE
