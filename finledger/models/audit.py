"""
Audit Models for FinLedger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of generated and rewritten transactions
2. Debugging information when a month appears twice or not at all
3. Ability to reconstruct what a template edit changed

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger mutation path has its own event type.
    """
    # Templates
    TEMPLATE_CREATED = "template_created"
    TEMPLATE_UPDATED = "template_updated"
    TEMPLATE_ACTIVATED = "template_activated"
    TEMPLATE_DEACTIVATED = "template_deactivated"
    TEMPLATE_DELETED = "template_deleted"

    # Materialization and propagation
    TRANSACTIONS_MATERIALIZED = "transactions_materialized"
    PROPAGATION_APPLIED = "propagation_applied"

    # Budgets and categories
    BUDGET_UPDATED = "budget_updated"
    CATEGORY_DELETED = "category_deleted"

    # Integrity
    INTEGRITY_CHECK_FAILED = "integrity_check_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'template', 'category', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., an edit and the sync it triggers)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list[str]:
        """
        Flatten to a list of strings for tabular audit storage.

        Columns: [event_id, timestamp, event_type, severity, entity_type,
        entity_id, correlation_id, description, details_json, error_message,
        is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.template_created(template_id, description, correlation_id)
        event = AuditEventBuilder.transactions_materialized(ids, today, correlation_id)
    """

    @staticmethod
    def template_created(
        template_id: str,
        description: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEMPLATE_CREATED,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Recurring template created: {description}",
            details={"template_description": description},
            is_user_action=True,
        )

    @staticmethod
    def template_updated(
        template_id: str,
        changed_fields: list[str],
        impact_past: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEMPLATE_UPDATED,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Recurring template updated ({', '.join(changed_fields) or 'no fields'})",
            details={
                "changed_fields": changed_fields,
                "impact_past": impact_past,
            },
            is_user_action=True,
        )

    @staticmethod
    def template_active_changed(
        template_id: str,
        active: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = (
            AuditEventType.TEMPLATE_ACTIVATED
            if active
            else AuditEventType.TEMPLATE_DEACTIVATED
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Recurring template {'activated' if active else 'deactivated'}",
            details={"active": active},
            is_user_action=True,
        )

    @staticmethod
    def template_deleted(
        template_id: str,
        kept_transactions: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEMPLATE_DELETED,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description="Recurring template deleted; materialized transactions kept",
            details={"kept_transactions": kept_transactions},
            is_user_action=True,
        )

    @staticmethod
    def transactions_materialized(
        transaction_ids: list[str],
        today: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_MATERIALIZED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Materialized {len(transaction_ids)} recurring transactions",
            details={
                "today": today,
                "count": len(transaction_ids),
                "transaction_ids": transaction_ids,
            },
        )

    @staticmethod
    def propagation_applied(
        template_id: str,
        transaction_ids: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROPAGATION_APPLIED,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Template edit rewrote {len(transaction_ids)} past transactions",
            details={
                "count": len(transaction_ids),
                "transaction_ids": transaction_ids,
            },
        )

    @staticmethod
    def budget_updated(
        category_id: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Budget for {category_id} set to {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(
        category_id: str,
        reassigned_to: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category deleted; references moved to {reassigned_to}",
            details={"reassigned_to": reassigned_to},
            is_user_action=True,
        )

    @staticmethod
    def integrity_check_failed(
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTEGRITY_CHECK_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Ledger integrity check failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Ledger store error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
