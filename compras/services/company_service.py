"""Company service - buying companies shown on document headers."""
import logging
from typing import List, Optional

from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError

from compras.exceptions import ValidationError
from compras.models import Company, AuditAction
from compras.services.audit_service import log_action
from compras.services.ownership import scoped_query, get_owned, notify_error
from compras.utils.validators import validate_rif, is_valid_email, clean_str

logger = logging.getLogger(__name__)


def validate_company_data(data: dict) -> dict:
    name = clean_str(data.get('name'))
    if not name:
        raise ValidationError('El nombre de la empresa es requerido.', field='name')

    rif = validate_rif(data.get('rif'))
    if not rif:
        raise ValidationError('RIF inválido o faltante.', field='rif')

    email = clean_str(data.get('email'))
    if email and not is_valid_email(email):
        raise ValidationError('Formato de Email inválido.', field='email')

    fiscal_data = data.get('fiscal_data')
    if fiscal_data is not None and not isinstance(fiscal_data, dict):
        raise ValidationError('Los datos fiscales deben ser un objeto.', field='fiscal_data')

    return {
        'name': name,
        'rif': rif,
        'email': email,
        'logo_url': clean_str(data.get('logo_url')),
        'address': clean_str(data.get('address')),
        'phone': clean_str(data.get('phone')),
        'fiscal_data': fiscal_data,
    }


def get_all_companies(session, ctx) -> List[Company]:
    try:
        return scoped_query(session, Company, ctx).order_by(Company.name).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error loading companies: {e}")
        notify_error('Error al cargar las empresas.')
        return []


def get_company_by_id(session, ctx, company_id: int) -> Company:
    return get_owned(session, Company, ctx, company_id, label='Empresa')


def search_companies(session, ctx, query: str = '', limit: int = 10) -> List[Company]:
    base = scoped_query(session, Company, ctx)
    term = (query or '').strip()
    if term:
        pattern = f'%{term.lower()}%'
        base = base.filter(or_(
            func.lower(Company.name).like(pattern),
            func.lower(Company.rif).like(pattern),
        ))
    try:
        return base.order_by(Company.name).limit(limit).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error searching companies: {e}")
        notify_error('Error al buscar empresas.')
        return []


def create_company(session, ctx, data: dict) -> Optional[Company]:
    values = validate_company_data(data)
    try:
        company = Company(account_id=ctx.account_id, **values)
        session.add(company)
        session.flush()
        log_action(
            session, ctx, AuditAction.CREATE_COMPANY,
            table_name='company',
            record_id=company.id,
            description=f'Creación de empresa {company.name}',
            details={'rif': company.rif}
        )
        session.commit()
        return company
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating company: {e}")
        notify_error(f'Error al crear la empresa: {e}')
        return None


def update_company(session, ctx, company_id: int, data: dict) -> Optional[Company]:
    company = get_owned(session, Company, ctx, company_id, label='Empresa')
    values = validate_company_data(data)
    try:
        for field, value in values.items():
            setattr(company, field, value)
        log_action(
            session, ctx, AuditAction.UPDATE_COMPANY,
            table_name='company',
            record_id=company.id,
            description=f'Actualización de empresa {company.name}',
            details={'rif': company.rif}
        )
        session.commit()
        return company
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error updating company {company_id}: {e}")
        notify_error(f'Error al actualizar la empresa: {e}')
        return None


def delete_company(session, ctx, company_id: int) -> bool:
    company = get_owned(session, Company, ctx, company_id, label='Empresa')
    try:
        session.delete(company)
        log_action(
            session, ctx, AuditAction.DELETE_COMPANY,
            table_name='company',
            record_id=company_id,
            description=f'Eliminación de empresa {company.name}',
            details={'company_id': company_id}
        )
        session.commit()
        return True
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error deleting company {company_id}: {e}")
        notify_error('Error al eliminar la empresa.')
        return False
