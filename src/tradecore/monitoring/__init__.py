"""Run metadata and audit trail."""

from tradecore.monitoring.audit import AuditLog, trade_payload
from tradecore.monitoring.context import RunContext, create_run_context

__all__ = ["AuditLog", "RunContext", "create_run_context", "trade_payload"]
