# admin_agent/client.py
"""
Conversation client for the admin agent endpoint.

Keeps the session's turns in memory (nothing persisted), posts each new query
with the turns that came before it, and records the reply as an "agent" turn.
Network failures become a fixed apology turn; nothing is retried.
"""

import os
from typing import Dict, List, Optional

import requests

from admin_agent import monitoring

AGENT_CHAT_URL = os.getenv("AGENT_CHAT_URL", "http://localhost:8000/api/agent-chat")

ERROR_REPLY = "Sorry, there was an error contacting the agent."
EMPTY_REPLY = "Sorry, I could not generate a response."


class AgentChatClient:
    def __init__(self, url: str = AGENT_CHAT_URL, session: Optional[requests.Session] = None,
                 timeout: float = 60.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.history: List[Dict[str, str]] = []
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    def reset(self):
        self.history = []

    def _post(self, query: str, prior: List[Dict[str, str]]) -> str:
        try:
            resp = self.session.post(self.url, json={"query": query, "history": prior}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            monitoring.logger.warning("Agent request failed", extra={"url": self.url, "error": str(e)})
            return ERROR_REPLY
        if not isinstance(data, dict):
            return EMPTY_REPLY
        return data.get("reply") or EMPTY_REPLY

    def send(self, query: str) -> Optional[str]:
        """Send one turn and return the agent's reply (None for blank input)."""
        if not query or not query.strip():
            return None
        if self._pending:
            raise RuntimeError("A request is already in flight")

        prior = list(self.history)
        self.history.append({"role": "user", "content": query})
        self._pending = True
        try:
            reply = self._post(query, prior)
        finally:
            self._pending = False
        self.history.append({"role": "agent", "content": reply})
        return reply
