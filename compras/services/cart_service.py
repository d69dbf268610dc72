"""
Draft purchase order lines collected before the order is generated.

The cart is a plain object passed explicitly to whoever needs it; between
requests it lives in the Flask session, one cart per account.
"""
import logging
from dataclasses import dataclass, field, asdict
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from flask import session as flask_session

from compras.exceptions import ValidationError
from compras.utils.calculations import calculate_totals

logger = logging.getLogger(__name__)

SESSION_KEY = 'cart_by_account'


def _to_decimal(value, field_name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f'Valor inválido para {field_name}.', field=field_name)


@dataclass
class CartItem:
    material_name: str
    quantity: Decimal
    unit_price: Decimal
    material_id: Optional[int] = None
    supplier_code: Optional[str] = None
    unit: Optional[str] = None
    tax_rate: Optional[Decimal] = None
    is_exempt: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'CartItem':
        name = (data.get('material_name') or '').strip()
        if not name:
            raise ValidationError('El nombre del material es requerido.', field='material_name')

        quantity = _to_decimal(data.get('quantity', 0), 'quantity')
        if quantity <= 0:
            raise ValidationError('La cantidad debe ser mayor a 0.', field='quantity')

        unit_price = _to_decimal(data.get('unit_price', 0), 'unit_price')
        if unit_price < 0:
            raise ValidationError('El precio unitario no puede ser negativo.', field='unit_price')

        tax_rate = data.get('tax_rate')
        return cls(
            material_name=name,
            quantity=quantity,
            unit_price=unit_price,
            material_id=data.get('material_id'),
            supplier_code=data.get('supplier_code'),
            unit=data.get('unit'),
            tax_rate=_to_decimal(tax_rate, 'tax_rate') if tax_rate is not None else None,
            is_exempt=data.get('is_exempt'),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ('quantity', 'unit_price', 'tax_rate'):
            if data[key] is not None:
                data[key] = str(data[key])
        return data


@dataclass
class OrderCart:
    """Ordered list of draft lines; positions are list indexes."""
    items: List[CartItem] = field(default_factory=list)

    def _check_index(self, index: int):
        if not 0 <= index < len(self.items):
            raise ValidationError(f'Ítem {index} no existe en el carrito.', field='index')

    def add_item(self, data: dict) -> CartItem:
        item = CartItem.from_dict(data)
        self.items.append(item)
        return item

    def update_item(self, index: int, changes: dict) -> CartItem:
        self._check_index(index)
        merged = self.items[index].to_dict()
        merged.update(changes)
        self.items[index] = CartItem.from_dict(merged)
        return self.items[index]

    def remove_item(self, index: int) -> None:
        self._check_index(index)
        del self.items[index]

    def clear(self) -> None:
        self.items = []

    def __len__(self):
        return len(self.items)

    def totals(self, default_tax_rate=Decimal('0.16')) -> dict:
        return calculate_totals([item.to_dict() for item in self.items], default_tax_rate)

    def to_order_items(self) -> List[dict]:
        """Lines in the shape purchase_order_service expects."""
        return [item.to_dict() for item in self.items]

    def to_dict(self) -> dict:
        return {'items': [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'OrderCart':
        cart = cls()
        for raw in (data or {}).get('items', []):
            try:
                cart.items.append(CartItem.from_dict(raw))
            except ValidationError as e:
                logger.warning(f"Dropping invalid cart line from session: {e.message}")
        return cart


def load_cart(account_id: int) -> OrderCart:
    """Cart stored in the Flask session for this account."""
    carts = flask_session.get(SESSION_KEY, {})
    return OrderCart.from_dict(carts.get(str(account_id)))


def save_cart(cart: OrderCart, account_id: int) -> None:
    """Save cart to session for the account."""
    carts = dict(flask_session.get(SESSION_KEY, {}))
    carts[str(account_id)] = cart.to_dict()
    flask_session[SESSION_KEY] = carts
    flask_session.modified = True
