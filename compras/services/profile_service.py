"""Profile service."""
import logging
import re
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from compras.exceptions import ValidationError
from compras.models import Profile, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.utils.validators import clean_str

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r'^[a-z0-9_.-]{3,30}$')
EDITABLE_FIELDS = ('first_name', 'last_name', 'username')


def get_all_profiles(session, ctx) -> List[Profile]:
    try:
        return scoped_query(session, Profile, ctx).order_by(Profile.email).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading profiles: {e}")
        notify_error('Error al cargar los perfiles.')
        return []


def get_profile_by_id(session, ctx, profile_id: int) -> Profile:
    return get_owned(session, Profile, ctx, profile_id, label='Perfil')


def update_profile(session, ctx, profile_id: int, data: dict) -> Optional[Profile]:
    """Update names and username. Usernames are stored lowercase."""
    profile = get_owned(session, Profile, ctx, profile_id, label='Perfil')

    values = {}
    for name in EDITABLE_FIELDS:
        if name in data:
            values[name] = clean_str(data.get(name))

    if values.get('username'):
        values['username'] = values['username'].lower()
        if not USERNAME_PATTERN.match(values['username']):
            raise ValidationError(
                'El nombre de usuario debe tener entre 3 y 30 caracteres (letras, números, _ . -).',
                field='username'
            )

    try:
        for name, value in values.items():
            setattr(profile, name, value)
        log_action(
            session, ctx, AuditAction.UPDATE_PROFILE,
            table_name='profile',
            record_id=profile.id,
            description=f'Actualización de perfil {profile.email}',
            details=values
        )
        session.commit()
        return profile
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Profile update conflict for {profile_id}: {e}")
        notify_error('El nombre de usuario ya está en uso.')
        return None
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating profile {profile_id}: {e}")
        notify_error('Error al actualizar el perfil.')
        return None
