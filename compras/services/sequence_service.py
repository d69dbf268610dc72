"""
Per-account numbering: supplier/material codes and purchase order numbers.
"""
import logging
import re

from sqlalchemy import func

from compras.models import Supplier, Material, PurchaseOrder, AccountSequence, PURCHASE_ORDER_SEQUENCE

logger = logging.getLogger(__name__)

SUPPLIER_CODE_PREFIX = 'P'
MATERIAL_CODE_PREFIX = 'MT'


def _next_code(session, model, account_id: int, prefix: str) -> str:
    """Current maximum numeric suffix for `prefix` in the account, plus one."""
    pattern = re.compile(rf'^{re.escape(prefix)}(\d+)$')
    codes = session.query(model.code).filter(
        model.account_id == account_id,
        model.code.like(f'{prefix}%')
    ).all()

    highest = 0
    for (code,) in codes:
        match = pattern.match(code or '')
        if match:
            highest = max(highest, int(match.group(1)))

    return f'{prefix}{highest + 1:03d}'


def next_supplier_code(session, account_id: int) -> str:
    """P001, P002, ... scoped to the account."""
    return _next_code(session, Supplier, account_id, SUPPLIER_CODE_PREFIX)


def next_material_code(session, account_id: int) -> str:
    """MT001, MT002, ... scoped to the account."""
    return _next_code(session, Material, account_id, MATERIAL_CODE_PREFIX)


def get_last_po_number(session, account_id: int) -> int:
    """Highest purchase order number already used in the account (0 if none)."""
    last = session.query(func.max(PurchaseOrder.sequence_number)).filter(
        PurchaseOrder.account_id == account_id
    ).scalar()
    return last or 0


def _get_po_sequence(session, account_id: int) -> AccountSequence:
    sequence = session.query(AccountSequence).filter(
        AccountSequence.account_id == account_id,
        AccountSequence.name == PURCHASE_ORDER_SEQUENCE
    ).first()

    if not sequence:
        sequence = AccountSequence(
            account_id=account_id,
            name=PURCHASE_ORDER_SEQUENCE,
            last_value=get_last_po_number(session, account_id)
        )
        session.add(sequence)
        session.flush()

    return sequence


def next_po_number(session, account_id: int) -> int:
    """
    Reserve the next purchase order number.

    The counter is flushed but not committed; it is committed together
    with the order that uses it.
    """
    sequence = _get_po_sequence(session, account_id)
    sequence.last_value += 1
    session.flush()
    return sequence.last_value


def peek_next_po_number(session, account_id: int) -> int:
    """Number the next purchase order will get, without reserving it."""
    sequence = session.query(AccountSequence).filter(
        AccountSequence.account_id == account_id,
        AccountSequence.name == PURCHASE_ORDER_SEQUENCE
    ).first()
    if sequence:
        return sequence.last_value + 1
    return get_last_po_number(session, account_id) + 1


def set_po_sequence_start(session, account_id: int, start_number: int) -> int:
    """
    Move the purchase order counter.

    start_number > 0 makes it the next number handed out; 0 restarts right
    after the highest existing order. Caller commits.

    Returns:
        The next number that will be assigned.
    """
    if start_number < 0:
        raise ValueError('start_number must be >= 0')

    sequence = _get_po_sequence(session, account_id)
    if start_number == 0:
        sequence.last_value = get_last_po_number(session, account_id)
    else:
        sequence.last_value = start_number - 1
    session.flush()

    logger.info(f"PO sequence for account {account_id} set, next number {sequence.last_value + 1}")
    return sequence.last_value + 1
