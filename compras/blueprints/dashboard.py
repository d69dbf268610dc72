"""Dashboard blueprint."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import dashboard_service
from compras.utils.responses import json_ok

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


@dashboard_bp.route('/', methods=['GET'])
@require_login
@require_account
def index():
    session = get_session()
    ctx = current_context()
    limit = request.args.get('limit', 5, type=int)
    return json_ok({
        'top_materials': dashboard_service.get_top_materials_by_quantity(session, ctx, limit=limit),
        'top_suppliers': dashboard_service.get_top_suppliers_by_order_count(session, ctx, limit=limit),
    })
