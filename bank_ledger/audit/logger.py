"""
Audit Logger

DESIGN DECISION: Every balance change, credential change and rejected
operation on the ledger is logged.
This provides:
1. Traceability of money movement
2. Debugging capability when the store fails to load or persist
3. A record of rejected attempts (bad logins, overdrafts)

The audit logger:
- Is synchronous, like the ledger store it serves
- Never raises into the ledger (a logging failure must not undo a mutation)
- Never sees passwords
"""

import logging

import structlog

from bank_ledger.models.audit import AuditEvent, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the standard library at `level`."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Emits each AuditEvent as one structured log line, at a level
    matching the event's severity.
    """

    def __init__(self, logger_name: str = "bank_ledger.audit"):
        self._logger = structlog.get_logger(logger_name)
        self.events_logged = 0

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).warning("audit logging failed: %s", e)
            return

        self.events_logged += 1
