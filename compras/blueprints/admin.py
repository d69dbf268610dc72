"""Admin blueprint - PIN-protected destructive operations."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import admin_service
from compras.utils.responses import json_ok

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/delete-all-data', methods=['POST'])
@require_login
@require_account
def delete_all_data():
    """Body: {type, pin}."""
    data = request.get_json(silent=True) or {}
    message = admin_service.delete_all_data(get_session(), current_context(), data.get('type'), data.get('pin'))
    return json_ok(message=message)


@admin_bp.route('/reset-data', methods=['POST'])
@require_login
@require_account
def reset_data():
    """Body: {pin}."""
    data = request.get_json(silent=True) or {}
    message = admin_service.reset_data_and_sequences(get_session(), current_context(), data.get('pin'))
    return json_ok(message=message)


@admin_bp.route('/po-sequence', methods=['POST'])
@require_login
@require_account
def set_po_sequence():
    """Body: {startNumber, pin}. startNumber 0 restarts after the highest order."""
    data = request.get_json(silent=True) or {}
    start_number = data.get('startNumber', data.get('start_number'))
    message = admin_service.set_po_sequence(get_session(), current_context(), start_number, data.get('pin'))
    return json_ok(message=message)
