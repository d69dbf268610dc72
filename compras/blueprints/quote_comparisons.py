"""Quote comparisons blueprint - side-by-side supplier prices per material."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import quote_comparison_service
from compras.utils.responses import json_ok, json_failure

quote_comparisons_bp = Blueprint('quote_comparisons', __name__, url_prefix='/api/quote-comparisons')


def _with_results(comparison):
    data = comparison.to_dict()
    data['results'] = [r.to_dict() for r in quote_comparison_service.compare_saved(comparison)]
    return data


@quote_comparisons_bp.route('/compare', methods=['POST'])
@require_login
def compare():
    """
    Compare quotes without saving.

    Body: {global_exchange_rate, items: [{material_id, material_name, quotes: [...]}]}
    """
    data = request.get_json(silent=True) or {}
    global_rate = data.get('global_exchange_rate')
    results = [
        quote_comparison_service.compare_quotes(
            item.get('material_id'), item.get('material_name'), item.get('quotes'), global_rate
        ).to_dict()
        for item in data.get('items') or []
    ]
    return json_ok(results)


@quote_comparisons_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_comparisons():
    comparisons = quote_comparison_service.get_all_quote_comparisons(get_session(), current_context())
    return json_ok([c.to_dict() for c in comparisons])


@quote_comparisons_bp.route('/<int:comparison_id>', methods=['GET'])
@require_login
@require_account
def get_comparison(comparison_id):
    comparison = quote_comparison_service.get_quote_comparison_by_id(get_session(), current_context(), comparison_id)
    return json_ok(_with_results(comparison))


@quote_comparisons_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_comparison():
    data = request.get_json(silent=True) or {}
    comparison = quote_comparison_service.create_quote_comparison(get_session(), current_context(), data)
    if comparison is None:
        return json_failure('Error al guardar la comparación.')
    return json_ok(_with_results(comparison), status=201)


@quote_comparisons_bp.route('/<int:comparison_id>', methods=['PUT'])
@require_login
@require_account
def update_comparison(comparison_id):
    data = request.get_json(silent=True) or {}
    comparison = quote_comparison_service.update_quote_comparison(
        get_session(), current_context(), comparison_id, data
    )
    if comparison is None:
        return json_failure('Error al actualizar la comparación.')
    return json_ok(_with_results(comparison))


@quote_comparisons_bp.route('/<int:comparison_id>', methods=['DELETE'])
@require_login
@require_account
def delete_comparison(comparison_id):
    if not quote_comparison_service.delete_quote_comparison(get_session(), current_context(), comparison_id):
        return json_failure('Error al eliminar la comparación.')
    return json_ok(message='Comparación eliminada.')
