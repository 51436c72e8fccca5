# admin_agent/handlers/analytics.py
from typing import Dict

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from admin_agent.db import Store
from admin_agent.errors import HandlerError
from admin_agent.handlers.admin import store_error_message
from admin_agent.models import Machine
from admin_agent.schemas import NoArgs


def count_statuses(statuses) -> Dict[str, int]:
    """Count occurrences, keeping the order each status was first seen."""
    counts: Dict[str, int] = {}
    for s in statuses:
        counts[s] = counts.get(s, 0) + 1
    return counts


def get_machine_analytics(store: Store, args: NoArgs) -> str:
    try:
        with store.session_scope() as session:
            statuses = session.execute(select(Machine.current_status)).scalars().all()
    except SQLAlchemyError as e:
        raise HandlerError("getMachineAnalytics", f"Failed to get machine analytics: {store_error_message(e)}") from e

    counts = count_statuses(statuses)
    if not counts:
        return "Machine Status Distribution: no machines found"
    return "Machine Status Distribution: " + ", ".join(f"{k}: {v}" for k, v in counts.items())


def get_revenue_analytics(store: Store, args: NoArgs) -> str:
    stmt = select(Machine.average_monthly_revenue).where(Machine.average_monthly_revenue.is_not(None))
    try:
        with store.session_scope() as session:
            revenues = session.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        raise HandlerError("getRevenueAnalytics", f"Failed to get revenue analytics: {store_error_message(e)}") from e

    total = float(sum(revenues))
    # empty set divides by 1 so the average reads 0.00
    average = total / (len(revenues) or 1)
    return f"Total Monthly Revenue: ${total:.2f}, Average per Machine: ${average:.2f}"
