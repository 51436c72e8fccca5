# admin_agent/registry.py
"""
Closed set of admin functions the model may call.

Each AdminFunction member has one FunctionSpec holding:
- the JSON schema sent to the completion service (and reused for decoding)
- the pydantic argument record the handler receives
- the handler itself, called as handler(store, args) -> summary string

The table is checked at import: a member without a spec, or a spec whose
required fields disagree with its argument record, fails loudly.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

from jsonschema import validate as jsonschema_validate, ValidationError as SchemaValidationError
from pydantic import ValidationError

from admin_agent.db import Store
from admin_agent.errors import InvalidArgumentsError
from admin_agent.handlers import admin, analytics, operations
from admin_agent.schemas import (
    FunctionArgs, NoArgs,
    AddLaundromatArgs, AddMachineArgs, AddUserArgs, AddDriverArgs,
)


class AdminFunction(str, Enum):
    ADD_LAUNDROMAT = "addLaundromat"
    ADD_MACHINE = "addMachine"
    ADD_USER = "addUser"
    ADD_DRIVER = "addDriver"
    GET_OFFLINE_MACHINES = "getOfflineMachines"
    GET_PENDING_BOOKINGS = "getPendingBookings"
    GET_SYSTEM_HEALTH = "getSystemHealth"
    TRIGGER_SELF_HEALING = "triggerSelfHealing"
    GET_MACHINE_ANALYTICS = "getMachineAnalytics"
    GET_REVENUE_ANALYTICS = "getRevenueAnalytics"


@dataclass(frozen=True)
class FunctionSpec:
    function: AdminFunction
    description: str
    parameters: Dict[str, Any]
    args_model: Type[FunctionArgs]
    handler: Callable[[Store, Any], str]

    def to_schema(self) -> Dict[str, Any]:
        return {
            "name": self.function.value,
            "description": self.description,
            "parameters": self.parameters,
        }


def _string(description: str) -> Dict[str, Any]:
    return {"type": "string", "description": description}


def _object(properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None) -> Dict[str, Any]:
    return {"type": "object", "properties": properties or {}, "required": required or []}


_SPECS = [
    FunctionSpec(
        AdminFunction.ADD_LAUNDROMAT,
        "Add a new laundromat to the system",
        _object({
            "name": _string("Name of the laundromat"),
            "address": _string("Address of the laundromat"),
            "borough": _string("Borough"),
            "phone": _string("Phone number"),
        }, ["name", "address", "borough"]),
        AddLaundromatArgs,
        admin.add_laundromat,
    ),
    FunctionSpec(
        AdminFunction.ADD_MACHINE,
        "Add a new machine to a laundromat",
        _object({
            "machine_id": _string("Machine ID"),
            "laundromat_id": _string("Laundromat ID"),
            "machine_type": _string("Type of machine (e.g., Washer, Dryer)"),
            "current_status": _string("Current status (e.g., Available, In Use)"),
        }, ["machine_id", "laundromat_id", "machine_type"]),
        AddMachineArgs,
        admin.add_machine,
    ),
    FunctionSpec(
        AdminFunction.ADD_USER,
        "Add a new user to the system",
        _object({
            "full_name": _string("Full name"),
            "email": _string("Email address"),
            "phone": _string("Phone number"),
        }, ["full_name", "email"]),
        AddUserArgs,
        admin.add_user,
    ),
    FunctionSpec(
        AdminFunction.ADD_DRIVER,
        "Add a new driver to the system",
        _object({
            "full_name": _string("Full name"),
            "phone": _string("Phone number"),
            "email": _string("Email address"),
        }, ["full_name", "phone"]),
        AddDriverArgs,
        admin.add_driver,
    ),
    FunctionSpec(
        AdminFunction.GET_OFFLINE_MACHINES,
        "Get a list of all offline machines",
        _object(),
        NoArgs,
        operations.get_offline_machines,
    ),
    FunctionSpec(
        AdminFunction.GET_PENDING_BOOKINGS,
        "Get a list of all pending bookings",
        _object(),
        NoArgs,
        operations.get_pending_bookings,
    ),
    FunctionSpec(
        AdminFunction.GET_SYSTEM_HEALTH,
        "Get the current health status of the system",
        _object(),
        NoArgs,
        operations.get_system_health,
    ),
    FunctionSpec(
        AdminFunction.TRIGGER_SELF_HEALING,
        "Trigger the self-healing routine to resolve operational issues",
        _object(),
        NoArgs,
        operations.trigger_self_healing,
    ),
    FunctionSpec(
        AdminFunction.GET_MACHINE_ANALYTICS,
        "Get analytics about machine status distribution",
        _object(),
        NoArgs,
        analytics.get_machine_analytics,
    ),
    FunctionSpec(
        AdminFunction.GET_REVENUE_ANALYTICS,
        "Get revenue analytics across all machines",
        _object(),
        NoArgs,
        analytics.get_revenue_analytics,
    ),
]

REGISTRY: Dict[AdminFunction, FunctionSpec] = {s.function: s for s in _SPECS}


def _check_registry():
    missing = [f.value for f in AdminFunction if f not in REGISTRY]
    if missing or len(REGISTRY) != len(_SPECS):
        raise RuntimeError(f"Admin function registry incomplete or duplicated: missing={missing}")
    for spec in _SPECS:
        declared = set(spec.parameters.get("required", []))
        model_required = {n for n, f in spec.args_model.model_fields.items() if f.is_required()}
        if declared != model_required:
            raise RuntimeError(
                f"{spec.function.value}: schema requires {sorted(declared)} "
                f"but argument record requires {sorted(model_required)}"
            )


_check_registry()


def function_schemas() -> List[Dict[str, Any]]:
    """Schemas in declaration order, ready for the completion request."""
    return [s.to_schema() for s in _SPECS]


def lookup(name: Optional[str]) -> Optional[AdminFunction]:
    try:
        return AdminFunction(name)
    except ValueError:
        return None


def decode_arguments(function: AdminFunction, raw: Any) -> FunctionArgs:
    """
    Turn the model's argument payload into the function's typed record.

    raw may be a JSON string (OpenAI) or an already-parsed dict (Anthropic).
    Raises InvalidArgumentsError instead of defaulting silently.
    """
    spec = REGISTRY[function]
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        payload: Any = {}
    elif isinstance(raw, str):
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidArgumentsError(function.value, f"arguments are not valid JSON ({e.msg})") from e
    else:
        payload = raw

    if not isinstance(payload, dict):
        raise InvalidArgumentsError(function.value, "arguments must be a JSON object")

    try:
        jsonschema_validate(instance=payload, schema=spec.parameters)
    except SchemaValidationError as e:
        raise InvalidArgumentsError(function.value, e.message) from e

    try:
        return spec.args_model.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise InvalidArgumentsError(function.value, problems) from e


def invoke(store: Store, function: AdminFunction, args: FunctionArgs) -> str:
    return REGISTRY[function].handler(store, args)
