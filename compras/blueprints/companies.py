"""Companies blueprint - the buyer's own companies used in document headers."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import company_service
from compras.utils.responses import json_ok, json_failure

companies_bp = Blueprint('companies', __name__, url_prefix='/api/companies')


@companies_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_companies():
    session = get_session()
    ctx = current_context()

    search_query = request.args.get('q')
    if search_query is not None:
        companies = company_service.search_companies(session, ctx, search_query)
    else:
        companies = company_service.get_all_companies(session, ctx)

    return json_ok([c.to_dict() for c in companies])


@companies_bp.route('/<int:company_id>', methods=['GET'])
@require_login
@require_account
def get_company(company_id):
    company = company_service.get_company_by_id(get_session(), current_context(), company_id)
    return json_ok(company.to_dict())


@companies_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_company():
    data = request.get_json(silent=True) or {}
    company = company_service.create_company(get_session(), current_context(), data)
    if company is None:
        return json_failure('Error al crear la empresa.')
    return json_ok(company.to_dict(), status=201)


@companies_bp.route('/<int:company_id>', methods=['PUT'])
@require_login
@require_account
def update_company(company_id):
    data = request.get_json(silent=True) or {}
    company = company_service.update_company(get_session(), current_context(), company_id, data)
    if company is None:
        return json_failure('Error al actualizar la empresa.')
    return json_ok(company.to_dict())


@companies_bp.route('/<int:company_id>', methods=['DELETE'])
@require_login
@require_account
def delete_company(company_id):
    if not company_service.delete_company(get_session(), current_context(), company_id):
        return json_failure('Error al eliminar la empresa.')
    return json_ok(message='Empresa eliminada.')
