"""Order cart blueprint - draft purchase order lines kept in the session."""
from flask import Blueprint, request, current_app

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import purchase_order_service
from compras.services.cart_service import load_cart, save_cart
from compras.utils.calculations import to_decimal
from compras.utils.responses import json_ok, json_failure

cart_bp = Blueprint('cart', __name__, url_prefix='/api/cart')


def _cart_response(cart, status=200):
    totals = cart.totals(to_decimal(current_app.config.get('DEFAULT_TAX_RATE', '0.16')))
    data = cart.to_dict()
    data['totals'] = {key: float(value) for key, value in totals.items()}
    return json_ok(data, status=status)


@cart_bp.route('/', methods=['GET'])
@require_login
@require_account
def view_cart():
    ctx = current_context()
    return _cart_response(load_cart(ctx.account_id))


@cart_bp.route('/items', methods=['POST'])
@require_login
@require_account
def add_item():
    ctx = current_context()
    cart = load_cart(ctx.account_id)
    cart.add_item(request.get_json(silent=True) or {})
    save_cart(cart, ctx.account_id)
    return _cart_response(cart, status=201)


@cart_bp.route('/items/<int:index>', methods=['PATCH'])
@require_login
@require_account
def update_item(index):
    ctx = current_context()
    cart = load_cart(ctx.account_id)
    cart.update_item(index, request.get_json(silent=True) or {})
    save_cart(cart, ctx.account_id)
    return _cart_response(cart)


@cart_bp.route('/items/<int:index>', methods=['DELETE'])
@require_login
@require_account
def remove_item(index):
    ctx = current_context()
    cart = load_cart(ctx.account_id)
    cart.remove_item(index)
    save_cart(cart, ctx.account_id)
    return _cart_response(cart)


@cart_bp.route('/', methods=['DELETE'])
@require_login
@require_account
def clear_cart():
    ctx = current_context()
    cart = load_cart(ctx.account_id)
    cart.clear()
    save_cart(cart, ctx.account_id)
    return _cart_response(cart)


@cart_bp.route('/checkout', methods=['POST'])
@require_login
@require_account
def checkout():
    """Create a purchase order from the cart lines. Body: order header fields."""
    ctx = current_context()
    cart = load_cart(ctx.account_id)
    data = request.get_json(silent=True) or {}

    order = purchase_order_service.create_purchase_order(get_session(), ctx, data, cart.to_order_items())
    if order is None:
        return json_failure('Error al crear la orden de compra.')

    cart.clear()
    save_cart(cart, ctx.account_id)
    return json_ok(order.to_dict(), status=201)
