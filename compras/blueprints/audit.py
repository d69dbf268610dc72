"""Audit log blueprint (read only)."""
from flask import Blueprint, request

from compras.database import get_session
from compras.exceptions import ValidationError
from compras.middleware import require_login, require_account, current_context
from compras.models import AuditAction
from compras.services.audit_service import get_audit_logs
from compras.utils.responses import json_ok

audit_bp = Blueprint('audit', __name__, url_prefix='/api/audit-log')

MAX_PAGE_SIZE = 500


@audit_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_audit_logs():
    """?limit=&offset=&action=&table= ; newest first."""
    limit = min(request.args.get('limit', 100, type=int), MAX_PAGE_SIZE)
    offset = request.args.get('offset', 0, type=int)

    action_filter = None
    action = request.args.get('action')
    if action:
        try:
            action_filter = AuditAction(action)
        except ValueError:
            raise ValidationError(f'Acción desconocida: {action}', field='action')

    logs = get_audit_logs(
        get_session(), current_context(),
        limit=limit, offset=offset,
        action_filter=action_filter,
        table_filter=request.args.get('table')
    )
    return json_ok([log.to_dict() for log in logs])
