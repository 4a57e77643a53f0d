"""Convenience imports for Alembic metadata discovery."""

from ticket_analytics.models.user import User
from ticket_analytics.models.ticket import Ticket, TicketAssignment, TicketEvent
from ticket_analytics.models.sla_config import SlaConfig
from ticket_analytics.models.ticket_metrics_daily import TicketMetricsDaily

__all__ = ["User", "Ticket", "TicketAssignment", "TicketEvent", "SlaConfig", "TicketMetricsDaily"]
