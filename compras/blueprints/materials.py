"""Materials blueprint - catalog CRUD and supplier lookup."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.models import MATERIAL_CATEGORIES, MATERIAL_UNITS
from compras.services import material_service
from compras.utils.responses import json_ok, json_failure

materials_bp = Blueprint('materials', __name__, url_prefix='/api/materials')


@materials_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_materials():
    session = get_session()
    ctx = current_context()

    search_query = request.args.get('q')
    if search_query is not None:
        materials = material_service.search_materials(session, ctx, search_query)
    else:
        materials = material_service.get_all_materials(session, ctx)

    return json_ok([m.to_dict() for m in materials])


@materials_bp.route('/options', methods=['GET'])
@require_login
def material_options():
    """Allowed categories and units."""
    return json_ok({'categories': MATERIAL_CATEGORIES, 'units': MATERIAL_UNITS})


@materials_bp.route('/<int:material_id>', methods=['GET'])
@require_login
@require_account
def get_material(material_id):
    material = material_service.get_material_by_id(get_session(), current_context(), material_id)
    return json_ok(material.to_dict())


@materials_bp.route('/<int:material_id>/suppliers', methods=['GET'])
@require_login
@require_account
def material_suppliers(material_id):
    """Suppliers that offer this material."""
    suppliers = material_service.get_suppliers_for_material(get_session(), current_context(), material_id)
    return json_ok(suppliers)


@materials_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_material():
    data = request.get_json(silent=True) or {}
    material = material_service.create_material(get_session(), current_context(), data)
    if material is None:
        return json_failure('Error al crear el material.')
    return json_ok(material.to_dict(), status=201)


@materials_bp.route('/<int:material_id>', methods=['PUT'])
@require_login
@require_account
def update_material(material_id):
    data = request.get_json(silent=True) or {}
    material = material_service.update_material(get_session(), current_context(), material_id, data)
    if material is None:
        return json_failure('Error al actualizar el material.')
    return json_ok(material.to_dict())


@materials_bp.route('/<int:material_id>', methods=['DELETE'])
@require_login
@require_account
def delete_material(material_id):
    if not material_service.delete_material(get_session(), current_context(), material_id):
        return json_failure('Error al eliminar el material.')
    return json_ok(message='Material eliminado.')
