# admin_agent/handlers/admin.py
"""
Insert handlers: laundromats, machines, users and drivers.

Each performs one insert and returns the summary string the model paraphrases
back to the admin. Store errors become HandlerError.
"""

import datetime

from sqlalchemy.exc import SQLAlchemyError

from admin_agent.db import Store
from admin_agent.errors import HandlerError
from admin_agent.models import Laundromat, Machine, User, Driver, MACHINE_AVAILABLE
from admin_agent.schemas import AddLaundromatArgs, AddMachineArgs, AddUserArgs, AddDriverArgs


def store_error_message(e: SQLAlchemyError) -> str:
    """Prefer the driver's message over SQLAlchemy's wrapped one."""
    orig = getattr(e, "orig", None)
    return str(orig) if orig is not None else str(e)


def add_laundromat(store: Store, args: AddLaundromatArgs) -> str:
    try:
        with store.session_scope() as session:
            session.add(Laundromat(
                name=args.name,
                address=args.address,
                borough=args.borough,
                phone=args.phone,
            ))
    except SQLAlchemyError as e:
        raise HandlerError("addLaundromat", f"Failed to add laundromat: {store_error_message(e)}") from e
    return f'Laundromat "{args.name}" at {args.address} ({args.borough}) added successfully.'


def add_machine(store: Store, args: AddMachineArgs) -> str:
    now = datetime.datetime.utcnow()
    try:
        with store.session_scope() as session:
            session.add(Machine(
                machine_id=args.machine_id,
                laundromat_id=args.laundromat_id,
                machine_type=args.machine_type,
                current_status=args.current_status or MACHINE_AVAILABLE,
                created_at=now,
                updated_at=now,
            ))
    except SQLAlchemyError as e:
        raise HandlerError("addMachine", f"Failed to add machine: {store_error_message(e)}") from e
    return f'Machine "{args.machine_id}" ({args.machine_type}) added to laundromat {args.laundromat_id}.'


def add_user(store: Store, args: AddUserArgs) -> str:
    try:
        with store.session_scope() as session:
            session.add(User(full_name=args.full_name, email=args.email, phone=args.phone))
    except SQLAlchemyError as e:
        raise HandlerError("addUser", f"Failed to add user: {store_error_message(e)}") from e
    return f'User "{args.full_name}" ({args.email}) added successfully.'


def add_driver(store: Store, args: AddDriverArgs) -> str:
    try:
        with store.session_scope() as session:
            session.add(Driver(full_name=args.full_name, phone=args.phone, email=args.email))
    except SQLAlchemyError as e:
        raise HandlerError("addDriver", f"Failed to add driver: {store_error_message(e)}") from e
    return f'Driver "{args.full_name}" ({args.phone}) added successfully.'
