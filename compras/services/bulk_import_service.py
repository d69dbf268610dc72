"""
Spreadsheet bulk import for suppliers, materials and supplier/material links.

Reads the first sheet of an .xlsx workbook; the first row holds the column
names of the download template. Rows are reconciled one by one and each
row is committed on its own, so a bad row never undoes the good ones.
"""
import logging
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from typing import List

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from compras.exceptions import ValidationError
from compras.models import Supplier, SupplierStatus, Material, MATERIAL_CATEGORIES, MATERIAL_UNITS, AuditAction
from compras.models.payment_terms import coerce_payment_terms, to_columns
from compras.services.audit_service import log_action
from compras.services.lifecycle import bulk_archive_by_supplier
from compras.services.sequence_service import next_supplier_code, next_material_code
from compras.services.supplier_material_service import upsert_supplier_material
from compras.utils.validators import validate_rif, is_valid_email, clean_str

logger = logging.getLogger(__name__)

UPLOAD_SUPPLIER = 'supplier'
UPLOAD_MATERIAL = 'material'
UPLOAD_RELATION = 'supplier_material_relation'
UPLOAD_TYPES = (UPLOAD_SUPPLIER, UPLOAD_MATERIAL, UPLOAD_RELATION)

# Template column names
COL_CODE = 'Código'
COL_RIF = 'RIF'
COL_NAME = 'Nombre'
COL_EMAIL = 'Email'
COL_PHONE = 'Teléfono Principal'
COL_PHONE_2 = 'Teléfono Secundario'
COL_INSTAGRAM = 'Instagram'
COL_ADDRESS = 'Dirección'
COL_PAYMENT_TERMS = 'Términos de Pago'
COL_CUSTOM_TERMS = 'Términos de Pago Personalizados'
COL_CREDIT_DAYS = 'Días de Crédito'
COL_STATUS = 'Estado'
COL_CATEGORY = 'Categoría'
COL_UNIT = 'Unidad'
COL_SPECIFICATION = 'ESPECIFICACION'
COL_EXEMPT = 'Exento de IVA'

TEMPLATE_HEADERS = {
    UPLOAD_SUPPLIER: [
        COL_CODE, COL_RIF, COL_NAME, COL_EMAIL, COL_PHONE, COL_PHONE_2, COL_INSTAGRAM,
        COL_ADDRESS, COL_PAYMENT_TERMS, COL_CUSTOM_TERMS, COL_CREDIT_DAYS, COL_STATUS,
    ],
    UPLOAD_MATERIAL: [COL_CODE, COL_NAME, COL_CATEGORY, COL_UNIT, COL_EXEMPT],
    UPLOAD_RELATION: [COL_RIF, COL_CODE, COL_SPECIFICATION],
}

_TRUTHY = {'SI', 'SÍ', 'S', 'TRUE', 'X', '1', 'YES'}


class RowError(Exception):
    """A row that cannot be imported; message is shown to the user."""


class RowWarning(Exception):
    """The row was saved but a follow-up step failed."""


@dataclass
class BulkImportResult:
    success_count: int = 0
    failure_count: int = 0
    errors: List[dict] = field(default_factory=list)
    warnings: List[dict] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f'Carga masiva completada. {self.success_count} registros exitosos, '
            f'{self.failure_count} con errores.'
        )

    def add_error(self, row: int, data: dict, reason: str):
        self.failure_count += 1
        self.errors.append({'row': row, 'data': data, 'reason': reason})

    def add_warning(self, row: int, reason: str):
        self.warnings.append({'row': row, 'reason': reason})

    def to_dict(self):
        return {
            'successCount': self.success_count,
            'failureCount': self.failure_count,
            'errors': self.errors,
            'warnings': self.warnings,
            'message': self.message,
        }


def read_rows(stream):
    """
    Yield (row_number, {header: value}) for every non-empty row of the
    first sheet. row_number is the spreadsheet row (header is row 1).
    """
    if isinstance(stream, (bytes, bytearray)):
        stream = BytesIO(stream)
    try:
        workbook = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        logger.warning(f"Invalid bulk upload workbook: {e}")
        raise ValidationError('El archivo no es un Excel (.xlsx) válido.', field='file')

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return
        keys = [clean_str(h) for h in header]

        for row_number, values in enumerate(rows, start=2):
            if values is None or all(v is None or str(v).strip() == '' for v in values):
                continue
            yield row_number, {
                key: value for key, value in zip(keys, values) if key is not None
            }
    finally:
        workbook.close()


def _import_supplier_row(session, ctx, data: dict) -> Supplier:
    code = clean_str(data.get(COL_CODE))
    rif = validate_rif(data.get(COL_RIF))
    name = clean_str(data.get(COL_NAME))
    email = clean_str(data.get(COL_EMAIL))

    if not rif:
        raise RowError('RIF inválido o faltante.')
    if not name:
        raise RowError('Nombre del proveedor faltante.')
    if email and not is_valid_email(email):
        raise RowError('Formato de Email inválido.')

    try:
        terms = coerce_payment_terms(
            data.get(COL_PAYMENT_TERMS),
            clean_str(data.get(COL_CUSTOM_TERMS)),
            data.get(COL_CREDIT_DAYS)
        )
    except ValidationError as e:
        raise RowError(e.message)

    status = clean_str(data.get(COL_STATUS))
    if status not in (SupplierStatus.ACTIVE.value, SupplierStatus.INACTIVE.value):
        status = SupplierStatus.ACTIVE.value

    values = {
        'rif': rif,
        'name': name,
        'email': email,
        'phone': clean_str(data.get(COL_PHONE)),
        'phone_2': clean_str(data.get(COL_PHONE_2)),
        'instagram': clean_str(data.get(COL_INSTAGRAM)),
        'address': clean_str(data.get(COL_ADDRESS)),
        'status': status,
    }
    values.update(to_columns(terms))

    query = session.query(Supplier).filter(Supplier.account_id == ctx.account_id)
    if code:
        existing = query.filter(Supplier.code == code).first()
    else:
        existing = query.filter(Supplier.rif == rif).first()

    if existing:
        for name_, value in values.items():
            setattr(existing, name_, value)
        supplier = existing
        logger.debug(f"Bulk upload: updated supplier {supplier.code}")
    else:
        supplier = Supplier(
            account_id=ctx.account_id,
            code=code or next_supplier_code(session, ctx.account_id),
            **values
        )
        session.add(supplier)
        logger.debug(f"Bulk upload: inserted supplier {supplier.code}")

    session.commit()
    if supplier.status == SupplierStatus.INACTIVE.value:
        if bulk_archive_by_supplier(session, ctx, supplier.id).failed:
            raise RowWarning(f'Proveedor {supplier.code} guardado, pero no se pudieron archivar sus documentos.')
    return supplier


def _parse_flag(value):
    """Spreadsheet yes/no cell; None when blank."""
    if value is None or str(value).strip() == '':
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().upper() in _TRUTHY


def _import_material_row(session, ctx, data: dict) -> Material:
    code = clean_str(data.get(COL_CODE))
    name = clean_str(data.get(COL_NAME))
    category = (clean_str(data.get(COL_CATEGORY)) or '').upper()
    unit = (clean_str(data.get(COL_UNIT)) or '').upper()

    if not name:
        raise RowError('Nombre del material faltante.')
    if category not in MATERIAL_CATEGORIES:
        raise RowError(f"Categoría inválida o faltante. Debe ser una de: {', '.join(MATERIAL_CATEGORIES)}")
    if unit not in MATERIAL_UNITS:
        raise RowError(f"Unidad inválida o faltante. Debe ser una de: {', '.join(MATERIAL_UNITS)}")

    name = name.upper()
    is_exempt = _parse_flag(data.get(COL_EXEMPT))
    query = session.query(Material).filter(Material.account_id == ctx.account_id)
    if code:
        existing = query.filter(Material.code == code).first()
    else:
        existing = query.filter(Material.name == name, Material.category == category).first()

    if existing:
        existing.name = name
        existing.category = category
        existing.unit = unit
        if is_exempt is not None:
            existing.is_exempt = is_exempt
        material = existing
    else:
        material = Material(
            account_id=ctx.account_id,
            code=code or next_material_code(session, ctx.account_id),
            name=name,
            category=category,
            unit=unit,
            is_exempt=bool(is_exempt),
        )
        session.add(material)

    session.commit()
    return material


def _import_relation_row(session, ctx, data: dict):
    raw_rif = clean_str(data.get(COL_RIF))
    material_code = clean_str(data.get(COL_CODE))
    specification = clean_str(data.get(COL_SPECIFICATION))

    if not raw_rif:
        raise RowError('RIF del proveedor faltante.')
    if not material_code:
        raise RowError('Código del material faltante.')

    rif = validate_rif(raw_rif) or raw_rif.upper()
    supplier = session.query(Supplier).filter(
        Supplier.account_id == ctx.account_id,
        Supplier.rif == rif
    ).first()
    if not supplier:
        raise RowError(f"Proveedor con RIF '{raw_rif}' no encontrado.")

    material = session.query(Material).filter(
        Material.account_id == ctx.account_id,
        Material.code == material_code
    ).first()
    if not material:
        raise RowError(f"Material con código '{material_code}' no encontrado.")

    relation = upsert_supplier_material(session, ctx, supplier.id, material.id, specification)
    session.commit()
    return relation


_ROW_HANDLERS = {
    UPLOAD_SUPPLIER: (_import_supplier_row, 'proveedor'),
    UPLOAD_MATERIAL: (_import_material_row, 'material'),
    UPLOAD_RELATION: (_import_relation_row, 'relación'),
}


def import_rows(session, ctx, upload_type: str, rows) -> BulkImportResult:
    """
    Reconcile already parsed rows: iterable of (row_number, data dict).

    Raises:
        ValidationError: unknown upload type.
    """
    if upload_type not in _ROW_HANDLERS:
        raise ValidationError('Tipo de carga no válido.', field='type')

    handler, label = _ROW_HANDLERS[upload_type]
    result = BulkImportResult()

    for row_number, data in rows:
        try:
            handler(session, ctx, data)
            result.success_count += 1
        except RowWarning as e:
            result.success_count += 1
            result.add_warning(row_number, str(e))
        except RowError as e:
            session.rollback()
            result.add_error(row_number, data, str(e))
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Bulk upload row {row_number} failed: {e}")
            result.add_error(row_number, data, f'Error al guardar {label}: {e}')

    try:
        log_action(
            session, ctx, AuditAction.BULK_UPLOAD,
            table_name=upload_type,
            description=result.message,
            details={'type': upload_type, 'success': result.success_count, 'failures': result.failure_count}
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Could not audit bulk upload: {e}")

    logger.info(f"Bulk upload ({upload_type}) for account {ctx.account_id}: {result.message}")
    return result


def import_workbook(session, ctx, upload_type: str, stream) -> BulkImportResult:
    """Parse an .xlsx file and reconcile its rows."""
    if upload_type not in UPLOAD_TYPES:
        raise ValidationError('Tipo de carga no válido.', field='type')
    return import_rows(session, ctx, upload_type, read_rows(stream))


def build_template(upload_type: str) -> bytes:
    """Empty .xlsx with the header row expected for `upload_type`."""
    if upload_type not in TEMPLATE_HEADERS:
        raise ValidationError('Tipo de plantilla no válido.', field='type')

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = 'Plantilla'
    sheet.append(TEMPLATE_HEADERS[upload_type])
    for column, header in enumerate(TEMPLATE_HEADERS[upload_type], start=1):
        sheet.column_dimensions[get_column_letter(column)].width = max(12, len(header) + 4)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
