"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Traceability of generated and rewritten transactions
2. Debugging capability when the ledger looks wrong
3. A history the user can inspect

The audit logger:
- Is async, matching the store it persists to
- Gracefully handles failures (a failed audit write never fails the ledger)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finledger.config import AppSettings, get_settings
from finledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finledger.services.storage import AuditStorageInterface


def configure_logging(settings: Optional[AppSettings] = None) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Safe to call more than once; the last call wins.
    """
    settings = settings or get_settings().app
    level = getattr(logging, settings.log_level)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_logs
        else structlog.dev.ConsoleRenderer()
    )

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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_template_created(
        self,
        template_id: str,
        description: str,
        correlation_id: UUID,
    ) -> None:
        """Log template creation."""
        await self.log(AuditEventBuilder.template_created(
            template_id=template_id,
            description=description,
            correlation_id=correlation_id,
        ))

    async def log_template_updated(
        self,
        template_id: str,
        changed_fields: list[str],
        impact_past: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a template edit."""
        await self.log(AuditEventBuilder.template_updated(
            template_id=template_id,
            changed_fields=changed_fields,
            impact_past=impact_past,
            correlation_id=correlation_id,
        ))

    async def log_template_active_changed(
        self,
        template_id: str,
        active: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.template_active_changed(
            template_id=template_id,
            active=active,
            correlation_id=correlation_id,
        ))

    async def log_template_deleted(
        self,
        template_id: str,
        kept_transactions: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.template_deleted(
            template_id=template_id,
            kept_transactions=kept_transactions,
            correlation_id=correlation_id,
        ))

    async def log_transactions_materialized(
        self,
        transaction_ids: list[str],
        today: str,
        correlation_id: UUID,
    ) -> None:
        """Log a materialization batch."""
        await self.log(AuditEventBuilder.transactions_materialized(
            transaction_ids=transaction_ids,
            today=today,
            correlation_id=correlation_id,
        ))

    async def log_propagation_applied(
        self,
        template_id: str,
        transaction_ids: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a retroactive rewrite."""
        await self.log(AuditEventBuilder.propagation_applied(
            template_id=template_id,
            transaction_ids=transaction_ids,
            correlation_id=correlation_id,
        ))

    async def log_budget_updated(
        self,
        category_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.budget_updated(
            category_id=category_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_category_deleted(
        self,
        category_id: str,
        reassigned_to: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.category_deleted(
            category_id=category_id,
            reassigned_to=reassigned_to,
            correlation_id=correlation_id,
        ))

    async def log_integrity_check_failed(
        self,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.integrity_check_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a ledger store failure."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a template edit).
    Pass it through all subsequent operations.
    """
    return uuid4()
