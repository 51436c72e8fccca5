# admin_agent/handlers/operations.py
"""
Operational handlers: offline machines, pending bookings, system health and
the self-healing sweep.

The sweep is all-or-nothing: both updates share one transaction, so a failure
in the second rolls back the first.
"""

import datetime
from concurrent.futures import ThreadPoolExecutor
from typing import List

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from admin_agent import monitoring
from admin_agent.db import Store
from admin_agent.errors import HandlerError
from admin_agent.handlers.admin import store_error_message
from admin_agent.models import (
    Laundromat, Machine, User, Driver, Booking,
    MACHINE_AVAILABLE, MACHINE_IN_USE, MACHINE_OFFLINE,
    BOOKING_PENDING, BOOKING_CANCELLED,
)
from admin_agent.schemas import NoArgs

STUCK_MACHINE_AGE = datetime.timedelta(hours=24)
STALE_BOOKING_AGE = datetime.timedelta(days=7)

HEALTHY_MESSAGE = "System is healthy. All services operational."
DEGRADED_MESSAGE = "System issues detected. Some services may be degraded."

# probe name -> column read with LIMIT 1
HEALTH_PROBES = {
    "machines": Machine.current_status,
    "bookings": Booking.status,
    "users": User.id,
    "drivers": Driver.id,
}


def _found(noun: str, ids: List[str]) -> str:
    if not ids:
        return f"Found 0 {noun}."
    return f"Found {len(ids)} {noun}: {', '.join(ids)}"


def get_offline_machines(store: Store, args: NoArgs) -> str:
    stmt = (
        select(Machine.machine_id, Machine.machine_type, Laundromat.name)
        .outerjoin(Laundromat, Machine.laundromat_id == Laundromat.id)
        .where(Machine.current_status == MACHINE_OFFLINE)
        .order_by(Machine.machine_id)
    )
    try:
        with store.session_scope() as session:
            rows = session.execute(stmt).all()
    except SQLAlchemyError as e:
        raise HandlerError("getOfflineMachines", f"Failed to get offline machines: {store_error_message(e)}") from e
    return _found("offline machines", [r.machine_id for r in rows])


def get_pending_bookings(store: Store, args: NoArgs) -> str:
    stmt = (
        select(Booking.booking_id, Booking.status, User.full_name)
        .outerjoin(User, Booking.user_id == User.id)
        .where(Booking.status == BOOKING_PENDING)
        .order_by(Booking.created_at)
    )
    try:
        with store.session_scope() as session:
            rows = session.execute(stmt).all()
    except SQLAlchemyError as e:
        raise HandlerError("getPendingBookings", f"Failed to get pending bookings: {store_error_message(e)}") from e
    return _found("pending bookings", [r.booking_id for r in rows])


def _probe(store: Store, name: str, column) -> bool:
    try:
        with store.session_scope() as session:
            session.execute(select(column).limit(1)).all()
        return True
    except SQLAlchemyError as e:
        monitoring.logger.warning("Health probe failed", extra={"probe": name, "error": store_error_message(e)})
        return False


def get_system_health(store: Store, args: NoArgs) -> str:
    with ThreadPoolExecutor(max_workers=len(HEALTH_PROBES)) as pool:
        futures = [pool.submit(_probe, store, name, col) for name, col in HEALTH_PROBES.items()]
        results = [f.result() for f in futures]
    return HEALTHY_MESSAGE if all(results) else DEGRADED_MESSAGE


def trigger_self_healing(store: Store, args: NoArgs) -> str:
    now = datetime.datetime.utcnow()
    reset_machines = (
        update(Machine)
        .where(Machine.current_status == MACHINE_IN_USE)
        .where(Machine.updated_at < now - STUCK_MACHINE_AGE)
        .values(current_status=MACHINE_AVAILABLE, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    cancel_bookings = (
        update(Booking)
        .where(Booking.status == BOOKING_PENDING)
        .where(Booking.created_at < now - STALE_BOOKING_AGE)
        .values(status=BOOKING_CANCELLED)
        .execution_options(synchronize_session=False)
    )
    try:
        with store.session_scope() as session:
            machines_reset = session.execute(reset_machines).rowcount or 0
            bookings_cancelled = session.execute(cancel_bookings).rowcount or 0
    except SQLAlchemyError as e:
        raise HandlerError(
            "triggerSelfHealing",
            f"Failed to complete self-healing routine: {store_error_message(e)}",
        ) from e

    monitoring.inc_self_healing_rows("machines", machines_reset)
    monitoring.inc_self_healing_rows("bookings", bookings_cancelled)
    return (
        f"Self-healing complete. Reset {machines_reset} stuck machines "
        f"and {bookings_cancelled} stale bookings."
    )
