"""Quote requests blueprint - solicitudes de cotización."""
from flask import Blueprint, request

from compras.blueprints.metrics import documents_created_total
from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import quote_request_service
from compras.utils.responses import json_ok, json_failure

quote_requests_bp = Blueprint('quote_requests', __name__, url_prefix='/api/quote-requests')


@quote_requests_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_quote_requests():
    """?status=Active|Approved|Archived|All (default Active)."""
    status_filter = request.args.get('status', 'Active')
    requests_ = quote_request_service.get_all_quote_requests(get_session(), current_context(), status_filter)
    return json_ok([r.to_dict(include_items=False) for r in requests_])


@quote_requests_bp.route('/<int:request_id>', methods=['GET'])
@require_login
@require_account
def get_quote_request(request_id):
    quote_request = quote_request_service.get_quote_request_by_id(get_session(), current_context(), request_id)
    return json_ok(quote_request.to_dict())


@quote_requests_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_quote_request():
    """Body: supplier_id, company_id, currency, exchange_rate, items[]."""
    data = request.get_json(silent=True) or {}
    quote_request = quote_request_service.create_quote_request(
        get_session(), current_context(), data, data.get('items') or []
    )
    if quote_request is None:
        return json_failure('Error al crear la solicitud de cotización.')
    documents_created_total.labels(document_type='quote_request').inc()
    return json_ok(quote_request.to_dict(), status=201)


@quote_requests_bp.route('/<int:request_id>', methods=['PUT'])
@require_login
@require_account
def update_quote_request(request_id):
    data = request.get_json(silent=True) or {}
    quote_request = quote_request_service.update_quote_request(
        get_session(), current_context(), request_id, data, data.get('items') or []
    )
    if quote_request is None:
        return json_failure('Error al actualizar la solicitud de cotización.')
    return json_ok(quote_request.to_dict())


@quote_requests_bp.route('/<int:request_id>/status', methods=['PATCH'])
@require_login
@require_account
def update_status(request_id):
    data = request.get_json(silent=True) or {}
    if not quote_request_service.update_quote_request_status(
        get_session(), current_context(), request_id, data.get('status')
    ):
        return json_failure('Error al actualizar el estado.')
    return json_ok(message='Estado actualizado.')


@quote_requests_bp.route('/<int:request_id>/archive', methods=['POST'])
@require_login
@require_account
def archive(request_id):
    if not quote_request_service.archive_quote_request(get_session(), current_context(), request_id):
        return json_failure('Error al archivar la solicitud.')
    return json_ok(message='Solicitud archivada.')


@quote_requests_bp.route('/<int:request_id>/unarchive', methods=['POST'])
@require_login
@require_account
def unarchive(request_id):
    if not quote_request_service.unarchive_quote_request(get_session(), current_context(), request_id):
        return json_failure('Error al desarchivar la solicitud.')
    return json_ok(message='Solicitud restaurada como borrador.')


@quote_requests_bp.route('/<int:request_id>', methods=['DELETE'])
@require_login
@require_account
def delete_quote_request(request_id):
    if not quote_request_service.delete_quote_request(get_session(), current_context(), request_id):
        return json_failure('Error al eliminar la solicitud.')
    return json_ok(message='Solicitud eliminada.')
