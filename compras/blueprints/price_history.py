"""Price history blueprint - prices paid per material and per supplier."""
from flask import Blueprint, request

from compras.database import get_session
from compras.exceptions import ValidationError
from compras.middleware import require_login, require_account, current_context
from compras.models import Currency
from compras.services import price_history_service
from compras.utils.responses import json_ok

price_history_bp = Blueprint('price_history', __name__, url_prefix='/api/price-history')


def _base_currency():
    base_currency = request.args.get('base_currency', Currency.USD.value).upper()
    if base_currency not in (Currency.USD.value, Currency.VES.value):
        raise ValidationError('Moneda base inválida.', field='base_currency')
    return base_currency


@price_history_bp.route('/material/<int:material_id>', methods=['GET'])
@require_login
@require_account
def by_material(material_id):
    entries = price_history_service.get_price_history_by_material(get_session(), current_context(), material_id)
    return json_ok([e.to_dict() for e in entries])


@price_history_bp.route('/material/<int:material_id>/summary', methods=['GET'])
@require_login
@require_account
def material_summary(material_id):
    """Latest/min/max/average per supplier, converted with ?base_currency=USD|VES."""
    base_currency = _base_currency()
    entries = price_history_service.get_price_history_by_material(get_session(), current_context(), material_id)
    summaries = price_history_service.summarize_by_supplier(entries, base_currency)
    return json_ok([s.to_dict() for s in summaries])


@price_history_bp.route('/supplier/<int:supplier_id>', methods=['GET'])
@require_login
@require_account
def by_supplier(supplier_id):
    entries = price_history_service.get_price_history_by_supplier(get_session(), current_context(), supplier_id)
    return json_ok([e.to_dict() for e in entries])
