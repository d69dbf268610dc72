"""Suppliers blueprint - account-scoped CRUD and search."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import supplier_service
from compras.services.lifecycle import bulk_archive_by_supplier
from compras.services.supplier_material_service import create_supplier_material
from compras.utils.responses import json_ok, json_failure

suppliers_bp = Blueprint('suppliers', __name__, url_prefix='/api/suppliers')


@suppliers_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_suppliers():
    """List suppliers, or search them by name/RIF with ?q=."""
    session = get_session()
    ctx = current_context()

    search_query = request.args.get('q')
    if search_query is not None:
        suppliers = supplier_service.search_suppliers(session, ctx, search_query)
    else:
        suppliers = supplier_service.get_all_suppliers(session, ctx)

    return json_ok([s.to_dict() for s in suppliers])


@suppliers_bp.route('/<int:supplier_id>', methods=['GET'])
@require_login
@require_account
def get_supplier(supplier_id):
    supplier = supplier_service.get_supplier_by_id(get_session(), current_context(), supplier_id)
    return json_ok(supplier.to_dict(include_materials=True))


@suppliers_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_supplier():
    """Create a supplier. Body: supplier fields plus optional `materials`."""
    data = request.get_json(silent=True) or {}
    supplier = supplier_service.create_supplier(
        get_session(), current_context(), data, materials=data.get('materials')
    )
    if supplier is None:
        return json_failure('Error al crear el proveedor.')
    return json_ok(supplier.to_dict(include_materials=True), status=201)


@suppliers_bp.route('/<int:supplier_id>', methods=['PUT'])
@require_login
@require_account
def update_supplier(supplier_id):
    data = request.get_json(silent=True) or {}
    supplier = supplier_service.update_supplier(
        get_session(), current_context(), supplier_id, data, materials=data.get('materials')
    )
    if supplier is None:
        return json_failure('Error al actualizar el proveedor.')
    return json_ok(supplier.to_dict(include_materials=True))


@suppliers_bp.route('/<int:supplier_id>', methods=['DELETE'])
@require_login
@require_account
def delete_supplier(supplier_id):
    if not supplier_service.delete_supplier(get_session(), current_context(), supplier_id):
        return json_failure('Error al eliminar el proveedor.')
    return json_ok(message='Proveedor eliminado.')


@suppliers_bp.route('/<int:supplier_id>/materials', methods=['POST'])
@require_login
@require_account
def add_supplier_material(supplier_id):
    """Link a material to the supplier. Body: material_id, specification."""
    data = request.get_json(silent=True) or {}
    relation = create_supplier_material(
        get_session(), current_context(), supplier_id,
        data.get('material_id'), data.get('specification')
    )
    if relation is None:
        return json_failure('Error al asociar el material.')
    return json_ok(relation.to_dict(), status=201)


@suppliers_bp.route('/<int:supplier_id>/archive-documents', methods=['POST'])
@require_login
@require_account
def archive_supplier_documents(supplier_id):
    """Archive every open quote request and purchase order of the supplier."""
    session = get_session()
    ctx = current_context()
    supplier_service.get_supplier_by_id(session, ctx, supplier_id)
    result = bulk_archive_by_supplier(session, ctx, supplier_id)
    return json_ok(result.to_dict())
