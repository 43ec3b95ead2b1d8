from enum import StrEnum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit.models import AuditLog
from src.core.auth.models import User


class AuditAction(StrEnum):
    """Standard audit actions."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    LOGIN = "LOGIN"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"

    # Fee / ledger actions
    RECORD_PAYMENT = "payment.record"
    SUBMIT_PAYMENT = "payment.submit"
    APPROVE_PAYMENT = "payment.approve"
    REJECT_PAYMENT = "payment.reject"
    EDIT_PAYMENT = "payment.edit"
    DELETE_PAYMENT = "payment.delete"
    APPLY_DISCOUNT = "admission.discount"
    CHANGE_PLAN = "admission.plan"


class AuditService:
    """Service for creating and reading audit logs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str | AuditAction,
        entity_type: str,
        entity_id: int,
        user_id: int | None = None,
        entity_identifier: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        comment: str | None = None,
        ip_address: str | None = None,
    ) -> AuditLog:
        """Create an audit log entry."""
        audit_log = AuditLog(
            user_id=user_id,
            action=str(action),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_identifier=entity_identifier,
            old_values=old_values,
            new_values=new_values,
            comment=comment,
            ip_address=ip_address,
        )

        self.db.add(audit_log)
        await self.db.flush()

        return audit_log

    async def list_for_entity(
        self, entity_type: str, entity_id: int
    ) -> list[tuple[AuditLog, str | None]]:
        """
        Audit trail of a single entity, oldest first.

        Payments are corrected in place, so this trail is the only record of
        what an edited or deleted row used to hold.
        """
        q = (
            select(AuditLog, User.full_name)
            .outerjoin(User, AuditLog.user_id == User.id)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.created_at, AuditLog.id)
        )
        result = await self.db.execute(q)
        return [(row[0], row[1]) for row in result.all()]
