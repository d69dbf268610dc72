"""Integration tests for spreadsheet bulk import."""
from io import BytesIO

import pytest
from openpyxl import Workbook, load_workbook

from compras.exceptions import ValidationError
from compras.models import Supplier, Material, SupplierMaterial, AuditLog, AuditAction
from compras.services.bulk_import_service import (
    import_workbook, build_template, TEMPLATE_HEADERS,
    UPLOAD_SUPPLIER, UPLOAD_MATERIAL, UPLOAD_RELATION
)


def _workbook_bytes(headers, rows):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(headers)
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer


SUPPLIER_HEADERS = ['Código', 'RIF', 'Nombre', 'Email', 'Términos de Pago',
                    'Términos de Pago Personalizados', 'Días de Crédito', 'Estado']


class TestSupplierImport:

    def test_insert_update_and_reject(self, session, ctx):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            ['P001', 'J-11111111-1', 'Alimentos Norte', 'norte@mail.com', 'Contado', None, None, 'Active'],
            ['P001', 'J-11111111-1', 'Alimentos Norte C.A.', None, 'Crédito', None, 30, 'Active'],
            ['P002', 'J-22222222-2', None, None, 'Contado', None, None, 'Active'],
        ])

        result = import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)

        assert result.success_count == 2
        assert result.failure_count == 1
        assert result.errors[0]['row'] == 4
        assert result.errors[0]['reason'] == 'Nombre del proveedor faltante.'
        assert result.to_dict()['message'] == 'Carga masiva completada. 2 registros exitosos, 1 con errores.'

        suppliers = session.query(Supplier).filter_by(account_id=ctx.account_id).all()
        assert len(suppliers) == 1
        assert suppliers[0].name == 'Alimentos Norte C.A.'
        assert (suppliers[0].payment_terms, suppliers[0].credit_days) == ('Crédito', 30)

    def test_match_by_rif_when_code_missing(self, session, ctx, supplier1):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            [None, supplier1.rif, 'Distribuidora Central Renovada', None, 'Contado', None, None, 'Active'],
        ])
        result = import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)

        assert result.success_count == 1
        assert session.query(Supplier).count() == 1
        assert session.query(Supplier).one().name == 'Distribuidora Central Renovada'

    def test_new_supplier_without_code_gets_next_code(self, session, ctx, supplier1):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            [None, 'J-33333333-3', 'Nuevo', None, None, None, None, None],
        ])
        import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)
        assert session.query(Supplier).filter_by(rif='J333333333').one().code == 'P002'

    def test_credito_with_zero_days_is_a_row_error(self, session, ctx):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            [None, 'J-33333333-3', 'Nuevo', None, 'Crédito', None, 0, None],
        ])
        result = import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)
        assert result.failure_count == 1
        assert 'Crédito' in result.errors[0]['reason']

    def test_unknown_terms_become_otro(self, session, ctx):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            [None, 'J-33333333-3', 'Nuevo', None, 'Consignación', None, None, None],
        ])
        import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)
        supplier = session.query(Supplier).one()
        assert (supplier.payment_terms, supplier.custom_payment_terms) == ('Otro', 'Consignación')

    def test_invalid_rif_is_a_row_error(self, session, ctx):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [[None, '123', 'Nuevo', None, None, None, None, None]])
        result = import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)
        assert result.errors[0]['reason'] == 'RIF inválido o faltante.'

    def test_upload_is_audited(self, session, ctx):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [[None, 'J-33333333-3', 'Nuevo', None, None, None, None, None]])
        import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)
        log = session.query(AuditLog).filter_by(action=AuditAction.BULK_UPLOAD).one()
        assert log.details['success'] == 1

    def test_inactive_row_with_failed_archive_is_saved_with_warning(self, session, ctx, failing_bulk_archive):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            [None, 'J-33333333-3', 'Nuevo', None, 'Contado', None, None, 'Inactive'],
        ])
        result = import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)

        assert (result.success_count, result.failure_count) == (1, 0)
        assert result.warnings == [{
            'row': 2,
            'reason': 'Proveedor P001 guardado, pero no se pudieron archivar sus documentos.',
        }]
        assert session.query(Supplier).one().status == 'Inactive'


class TestMaterialImport:

    def test_insert_and_validate(self, session, ctx):
        stream = _workbook_bytes(['Código', 'Nombre', 'Categoría', 'Unidad', 'Exento de IVA'], [
            [None, 'harina de maiz', 'seca', 'kg', 'SI'],
            [None, 'Tornillo', 'TORNILLERIA', 'UND', None],
            [None, 'Cloro', 'INSUMOS DE LIMPIEZA', 'CUÑETE', None],
        ])
        result = import_workbook(session, ctx, UPLOAD_MATERIAL, stream)

        assert result.success_count == 1
        assert [e['row'] for e in result.errors] == [3, 4]
        assert result.errors[0]['reason'].startswith('Categoría inválida o faltante.')
        assert result.errors[1]['reason'].startswith('Unidad inválida o faltante.')

        material = session.query(Material).one()
        assert (material.code, material.name, material.is_exempt) == ('MT001', 'HARINA DE MAIZ', True)

    def test_match_by_name_and_category(self, session, ctx, material1):
        stream = _workbook_bytes(['Código', 'Nombre', 'Categoría', 'Unidad'], [
            [None, 'Harina de Trigo', 'SECA', 'SACO'],
        ])
        import_workbook(session, ctx, UPLOAD_MATERIAL, stream)
        assert session.query(Material).count() == 1
        assert session.query(Material).one().unit == 'SACO'


class TestRelationImport:

    def test_links_supplier_and_material(self, session, ctx, supplier1, material1):
        stream = _workbook_bytes(['RIF', 'Código', 'ESPECIFICACION'], [
            [supplier1.rif, material1.code, 'Saco 45kg'],
            ['J-99999999-9', material1.code, None],
            [supplier1.rif, 'MT999', None],
        ])
        result = import_workbook(session, ctx, UPLOAD_RELATION, stream)

        assert result.success_count == 1
        assert result.errors[0]['reason'] == "Proveedor con RIF 'J-99999999-9' no encontrado."
        assert result.errors[1]['reason'] == "Material con código 'MT999' no encontrado."
        relation = session.query(SupplierMaterial).one()
        assert relation.specification == 'Saco 45kg'

    def test_existing_link_is_updated(self, session, ctx, supplier1, material1):
        rows = [[supplier1.rif, material1.code, 'A']]
        import_workbook(session, ctx, UPLOAD_RELATION, _workbook_bytes(['RIF', 'Código', 'ESPECIFICACION'], rows))
        rows = [[supplier1.rif, material1.code, 'B']]
        import_workbook(session, ctx, UPLOAD_RELATION, _workbook_bytes(['RIF', 'Código', 'ESPECIFICACION'], rows))

        assert session.query(SupplierMaterial).one().specification == 'B'


class TestWorkbookHandling:

    def test_invalid_file(self, session, ctx):
        with pytest.raises(ValidationError):
            import_workbook(session, ctx, UPLOAD_SUPPLIER, BytesIO(b'not a workbook'))

    def test_unknown_type(self, session, ctx):
        with pytest.raises(ValidationError):
            import_workbook(session, ctx, 'cliente', BytesIO(b''))

    def test_blank_rows_are_skipped(self, session, ctx):
        stream = _workbook_bytes(SUPPLIER_HEADERS, [
            [None] * len(SUPPLIER_HEADERS),
            [None, 'J-33333333-3', 'Nuevo', None, None, None, None, None],
        ])
        result = import_workbook(session, ctx, UPLOAD_SUPPLIER, stream)
        assert (result.success_count, result.failure_count) == (1, 0)

    def test_template_headers(self):
        workbook = load_workbook(BytesIO(build_template(UPLOAD_MATERIAL)))
        header = [cell.value for cell in workbook.active[1]]
        assert header == TEMPLATE_HEADERS[UPLOAD_MATERIAL]
