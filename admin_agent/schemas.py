# admin_agent/schemas.py
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


# ---------------------------------------------------------------------------
# HTTP contract
# ---------------------------------------------------------------------------
class ChatTurn(BaseModel):
    role: str  # "user" | "agent" (assistant/function tolerated)
    content: str = ""


class ChatRequest(BaseModel):
    query: str
    history: List[ChatTurn] = Field(default_factory=list)


class ChatReply(BaseModel):
    reply: str


# ---------------------------------------------------------------------------
# Typed argument records, one per admin function
# ---------------------------------------------------------------------------
class FunctionArgs(BaseModel):
    # extra keys from the model are dropped; blank strings count as missing
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class NoArgs(FunctionArgs):
    pass


class AddLaundromatArgs(FunctionArgs):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    borough: str = Field(min_length=1)
    phone: Optional[str] = None


class AddMachineArgs(FunctionArgs):
    machine_id: str = Field(min_length=1)
    laundromat_id: str = Field(min_length=1)
    machine_type: str = Field(min_length=1)
    current_status: Optional[str] = None


class AddUserArgs(FunctionArgs):
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: Optional[str] = None


class AddDriverArgs(FunctionArgs):
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[str] = None
