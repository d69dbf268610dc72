"""Middleware for authentication and account context."""
from functools import wraps

from flask import session, g, jsonify, current_app

from compras.database import get_session
from compras.models import Account, Profile
from compras.services.ownership import AccountContext


def load_account_context():
    """
    Load current profile and account into g (Flask's per-request global).

    Called before each request. Sets g.user and g.account_id when the
    session carries a profile that belongs to an active account.
    """
    g.user = None
    g.account_id = None

    try:
        user_id = session.get('user_id')
        if not user_id:
            return

        db_session = get_session()
        if not db_session:
            return

        profile = db_session.query(Profile).filter_by(id=user_id).first()
        if not profile:
            session.pop('user_id', None)
            return

        g.user = profile

        account_id = session.get('account_id')
        if account_id and account_id == profile.account_id:
            account = db_session.query(Account).filter_by(id=account_id).first()
            if account and account.active:
                g.account_id = account_id
            else:
                session.pop('account_id', None)
    except Exception as e:
        # Context loading must never take the whole app down
        current_app.logger.error(f"Error in load_account_context: {e}")


def require_login(f):
    """Decorator: Require an authenticated profile (401 otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            return jsonify({'status': 'error', 'message': 'Debes iniciar sesión para acceder a este recurso.'}), 401
        return f(*args, **kwargs)
    return decorated_function


def require_account(f):
    """
    Decorator: Require an account in the session (403 otherwise).

    Must be used AFTER require_login.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('account_id') is None:
            return jsonify({'status': 'error', 'message': 'No hay una cuenta seleccionada.'}), 403
        return f(*args, **kwargs)
    return decorated_function


def current_context() -> AccountContext:
    """AccountContext for the profile making the request."""
    user = g.get('user')
    return AccountContext(
        account_id=g.get('account_id'),
        user_id=user.id if user else None,
        user_email=user.email if user else None,
    )
