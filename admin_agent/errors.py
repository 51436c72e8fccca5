# admin_agent/errors.py
"""
Exception types shared by the dispatcher, handlers and HTTP layer.

- ConfigurationError      -> missing credentials, fatal for the request
- CompletionServiceError  -> upstream completion API failed (raw text kept)
- HandlerError            -> store failure inside a handler
- InvalidArgumentsError   -> model-issued arguments failed decoding
"""

from typing import Optional


class AgentError(Exception):
    """Base class for admin agent failures."""


class ConfigurationError(AgentError):
    pass


class CompletionServiceError(AgentError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class HandlerError(AgentError):
    def __init__(self, function_name: str, message: str):
        super().__init__(message)
        self.function_name = function_name
        self.message = message


class InvalidArgumentsError(AgentError):
    def __init__(self, function_name: str, detail: str):
        super().__init__(f"Invalid arguments for {function_name}: {detail}")
        self.function_name = function_name
        self.detail = detail
