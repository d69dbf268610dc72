"""Bulk upload blueprint - spreadsheet import and templates."""
from io import BytesIO

from flask import Blueprint, request, send_file, current_app

from compras.blueprints.metrics import bulk_upload_rows_total
from compras.database import get_session
from compras.exceptions import ValidationError
from compras.middleware import require_login, require_account, current_context
from compras.services import bulk_import_service
from compras.utils.responses import json_ok

bulk_upload_bp = Blueprint('bulk_upload', __name__, url_prefix='/api/bulk-upload')

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

TEMPLATE_FILENAMES = {
    bulk_import_service.UPLOAD_SUPPLIER: 'plantilla_proveedores.xlsx',
    bulk_import_service.UPLOAD_MATERIAL: 'plantilla_materiales.xlsx',
    bulk_import_service.UPLOAD_RELATION: 'plantilla_proveedor_material.xlsx',
}


def _allowed_file(filename: str) -> bool:
    allowed = current_app.config.get('ALLOWED_EXTENSIONS', {'xlsx'})
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed


@bulk_upload_bp.route('/', methods=['POST'])
@require_login
@require_account
def upload():
    """
    Import a spreadsheet.

    Form fields: file (.xlsx) and type (supplier | material |
    supplier_material_relation).
    """
    upload_type = request.form.get('type', '')
    upload_file = request.files.get('file')

    if upload_file is None or not upload_file.filename:
        raise ValidationError('Debe seleccionar un archivo.', field='file')
    if not _allowed_file(upload_file.filename):
        raise ValidationError('Formato de archivo no permitido. Use .xlsx', field='file')

    result = bulk_import_service.import_workbook(
        get_session(), current_context(), upload_type, BytesIO(upload_file.read())
    )

    bulk_upload_rows_total.labels(upload_type=upload_type, result='success').inc(result.success_count)
    bulk_upload_rows_total.labels(upload_type=upload_type, result='failure').inc(result.failure_count)

    return json_ok(result.to_dict())


@bulk_upload_bp.route('/template/<upload_type>', methods=['GET'])
@require_login
def template(upload_type):
    """Download the empty spreadsheet for an upload type."""
    content = bulk_import_service.build_template(upload_type)
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=TEMPLATE_FILENAMES[upload_type]
    )
