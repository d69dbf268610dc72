"""
Audit logging service for tracking mutating actions.
"""
import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from compras.models.audit_log import AuditLog, AuditAction
from compras.services.ownership import notify_error

logger = logging.getLogger(__name__)


def log_action(
    session,
    ctx,
    action: AuditAction,
    table_name: str = None,
    record_id: int = None,
    description: str = None,
    details: dict = None
):
    """
    Add an audit entry to the session.

    Args:
        session: Database session
        ctx: AccountContext of the actor
        action: AuditAction enum value
        table_name: Affected table (e.g., 'supplier', 'purchase_order')
        record_id: ID of the affected record
        description: Human readable summary
        details: Dict with additional details (stored as JSON)
    """
    try:
        details_json = None
        if details:
            try:
                # Round-trip through json so Decimals/dates are stored as strings
                details_json = json.loads(json.dumps(details, default=str))
            except (TypeError, ValueError) as e:
                logger.warning(f"Failed to serialize audit details: {e}")
                details_json = {'raw': str(details)}

        audit_entry = AuditLog(
            account_id=ctx.account_id,
            user_id=ctx.user_id,
            user_email=ctx.user_email,
            action=action,
            table_name=table_name,
            record_id=record_id,
            description=description,
            details=details_json,
        )

        session.add(audit_entry)
        # Note: Caller is responsible for committing the session

        logger.info(f"Audit log created: {action.value} by {ctx.user_email} on {table_name} {record_id}")

    except Exception as e:
        logger.error(f"Failed to create audit log: {e}")
        # Don't raise exception - audit failures should not break business logic


def get_audit_logs(
    session,
    ctx,
    limit: int = 100,
    offset: int = 0,
    action_filter: AuditAction = None,
    table_filter: str = None
):
    """
    Retrieve audit logs for an account, newest first.

    Args:
        session: Database session
        ctx: AccountContext
        limit: Max number of results
        offset: Pagination offset
        action_filter: Filter by specific action
        table_filter: Filter by affected table

    Returns:
        List of AuditLog objects
    """
    query = session.query(AuditLog).filter(
        AuditLog.account_id == ctx.account_id
    )

    if action_filter:
        query = query.filter(AuditLog.action == action_filter)

    if table_filter:
        query = query.filter(AuditLog.table_name == table_filter)

    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    query = query.limit(limit).offset(offset)

    try:
        return query.all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading audit log: {e}")
        notify_error('Error al cargar el historial de auditoría.')
        return []
