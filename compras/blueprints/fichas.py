"""Technical sheets blueprint (metadata only)."""
from flask import Blueprint, request

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import ficha_tecnica_service
from compras.utils.responses import json_ok, json_failure

fichas_bp = Blueprint('fichas', __name__, url_prefix='/api/fichas-tecnicas')


@fichas_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_fichas():
    """?supplier_id= narrows the list; adding ?product_name= returns the matching sheet."""
    session = get_session()
    ctx = current_context()
    supplier_id = request.args.get('supplier_id', type=int)
    product_name = request.args.get('product_name')

    if supplier_id and product_name:
        ficha = ficha_tecnica_service.get_ficha_by_supplier_and_product(session, ctx, supplier_id, product_name)
        return json_ok(ficha.to_dict() if ficha else None)

    fichas = ficha_tecnica_service.get_all_fichas(session, ctx, supplier_id=supplier_id)
    return json_ok([f.to_dict() for f in fichas])


@fichas_bp.route('/', methods=['POST'])
@require_login
@require_account
def create_ficha():
    data = request.get_json(silent=True) or {}
    ficha = ficha_tecnica_service.create_ficha(get_session(), current_context(), data)
    if ficha is None:
        return json_failure('Error al registrar la ficha técnica.')
    return json_ok(ficha.to_dict(), status=201)


@fichas_bp.route('/<int:ficha_id>', methods=['DELETE'])
@require_login
@require_account
def delete_ficha(ficha_id):
    if not ficha_tecnica_service.delete_ficha(get_session(), current_context(), ficha_id):
        return json_failure('Error al eliminar la ficha técnica.')
    return json_ok(message='Ficha técnica eliminada.')
