"""Purchase orders blueprint - órdenes de compra."""
from flask import Blueprint, request

from compras.blueprints.metrics import documents_created_total
from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import purchase_order_service
from compras.services.price_history_service import count_for_order
from compras.services.sequence_service import peek_next_po_number
from compras.utils.calculations import number_to_words
from compras.utils.responses import json_ok, json_failure

purchase_orders_bp = Blueprint('purchase_orders', __name__, url_prefix='/api/purchase-orders')


def _totals_dict(order):
    totals = purchase_order_service.get_order_totals(order)
    return {
        'base_imponible': float(totals['base_imponible']),
        'monto_iva': float(totals['monto_iva']),
        'total': float(totals['total']),
        'total_en_letras': number_to_words(totals['total'], order.currency),
    }


@purchase_orders_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_purchase_orders():
    """?status=Active|Approved|Archived|All (default Active)."""
    status_filter = request.args.get('status', 'Active')
    orders = purchase_order_service.get_all_purchase_orders(get_session(), current_context(), status_filter)
    return json_ok([o.to_dict(include_items=False) for o in orders])


@purchase_orders_bp.route('/next-number', methods=['GET'])
@require_login
@require_account
def next_number():
    ctx = current_context()
    return json_ok({'next_number': peek_next_po_number(get_session(), ctx.account_id)})


@purchase_orders_bp.route('/<int:order_id>', methods=['GET'])
@require_login
@require_account
def get_purchase_order(order_id):
    order = purchase_order_service.get_purchase_order_by_id(get_session(), current_context(), order_id)
    data = order.to_dict()
    data['totals'] = _totals_dict(order)
    return json_ok(data)


@purchase_orders_bp.route('/<int:order_id>/totals', methods=['GET'])
@require_login
@require_account
def get_totals(order_id):
    order = purchase_order_service.get_purchase_order_by_id(get_session(), current_context(), order_id)
    return json_ok(_totals_dict(order))


@purchase_orders_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_purchase_order():
    """Body: header fields (supplier_id, company_id, currency, ...) and items[]."""
    session = get_session()
    ctx = current_context()
    data = request.get_json(silent=True) or {}

    order = purchase_order_service.create_purchase_order(session, ctx, data, data.get('items') or [])
    if order is None:
        return json_failure('Error al crear la orden de compra.')

    documents_created_total.labels(document_type='purchase_order').inc()
    result = order.to_dict()
    result['totals'] = _totals_dict(order)
    result['price_history_entries'] = count_for_order(session, ctx, order.id)
    return json_ok(result, status=201)


@purchase_orders_bp.route('/<int:order_id>', methods=['PUT'])
@require_login
@require_account
def update_purchase_order(order_id):
    session = get_session()
    ctx = current_context()
    data = request.get_json(silent=True) or {}

    order = purchase_order_service.update_purchase_order(session, ctx, order_id, data, data.get('items') or [])
    if order is None:
        return json_failure('Error al actualizar la orden de compra.')

    result = order.to_dict()
    result['totals'] = _totals_dict(order)
    result['price_history_entries'] = count_for_order(session, ctx, order.id)
    return json_ok(result)


@purchase_orders_bp.route('/<int:order_id>/status', methods=['PATCH'])
@require_login
@require_account
def update_status(order_id):
    data = request.get_json(silent=True) or {}
    if not purchase_order_service.update_purchase_order_status(
        get_session(), current_context(), order_id, data.get('status')
    ):
        return json_failure('Error al actualizar el estado.')
    return json_ok(message='Estado actualizado.')


@purchase_orders_bp.route('/<int:order_id>/archive', methods=['POST'])
@require_login
@require_account
def archive(order_id):
    if not purchase_order_service.archive_purchase_order(get_session(), current_context(), order_id):
        return json_failure('Error al archivar la orden.')
    return json_ok(message='Orden archivada.')


@purchase_orders_bp.route('/<int:order_id>/unarchive', methods=['POST'])
@require_login
@require_account
def unarchive(order_id):
    if not purchase_order_service.unarchive_purchase_order(get_session(), current_context(), order_id):
        return json_failure('Error al desarchivar la orden.')
    return json_ok(message='Orden restaurada como borrador.')


@purchase_orders_bp.route('/<int:order_id>', methods=['DELETE'])
@require_login
@require_account
def delete_purchase_order(order_id):
    if not purchase_order_service.delete_purchase_order(get_session(), current_context(), order_id):
        return json_failure('Error al eliminar la orden.')
    return json_ok(message='Orden eliminada.')
