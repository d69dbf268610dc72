"""Profiles blueprint."""
from flask import Blueprint, request, g

from compras.database import get_session
from compras.middleware import require_login, require_account, current_context
from compras.services import profile_service
from compras.utils.responses import json_ok, json_failure

profiles_bp = Blueprint('profiles', __name__, url_prefix='/api/profiles')


@profiles_bp.route('/', methods=['GET'])
@require_login
@require_account
def list_profiles():
    profiles = profile_service.get_all_profiles(get_session(), current_context())
    return json_ok([p.to_dict() for p in profiles])


@profiles_bp.route('/me', methods=['GET'])
@require_login
def my_profile():
    return json_ok(g.user.to_dict())


@profiles_bp.route('/me', methods=['PUT'])
@require_login
@require_account
def update_my_profile():
    data = request.get_json(silent=True) or {}
    profile = profile_service.update_profile(get_session(), current_context(), g.user.id, data)
    if profile is None:
        return json_failure('Error al actualizar el perfil.')
    return json_ok(profile.to_dict())
