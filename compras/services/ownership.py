"""
Ownership checks for account-scoped records.

Every owned table carries account_id. Reads and writes go through
scoped_query / get_owned so that a record belonging to another account
behaves exactly like a missing one.
"""
from dataclasses import dataclass
from typing import Optional, Type

from flask import flash, has_request_context
from sqlalchemy.orm import Session

from compras.exceptions import NotFoundError, UnauthorizedError


@dataclass(frozen=True)
class AccountContext:
    """Who is acting, and on behalf of which account."""
    account_id: int
    user_id: Optional[int] = None
    user_email: Optional[str] = None

    def __post_init__(self):
        if not self.account_id:
            raise UnauthorizedError('Se requiere una cuenta para esta operación.')


def scoped_query(session: Session, model: Type, ctx: AccountContext):
    """Query over `model` restricted to rows owned by ctx.account_id."""
    return session.query(model).filter(model.account_id == ctx.account_id)


def get_owned(session: Session, model: Type, ctx: AccountContext, record_id, label: str = 'Registro'):
    """
    Fetch one owned record.

    Raises:
        NotFoundError: if the id does not exist or belongs to another account.
    """
    record = scoped_query(session, model, ctx).filter(model.id == record_id).first()
    if record is None:
        raise NotFoundError(f'{label} {record_id} no encontrado.')
    return record


def notify_error(message: str) -> None:
    """Surface a user-facing error message when serving a request."""
    if has_request_context():
        flash(message, 'danger')
