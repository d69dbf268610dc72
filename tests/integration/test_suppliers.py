"""
Integration tests for suppliers: codes, payment terms, materials and the
Inactive -> archive cascade.
"""
import pytest

from compras.exceptions import ValidationError, NotFoundError
from compras.models import Supplier, SupplierMaterial, QuoteRequest, PurchaseOrder, AuditLog, AuditAction
from compras.services import supplier_service
from compras.services.lifecycle import bulk_archive_by_supplier


def _supplier_data(**overrides):
    data = {
        'rif': 'J-30000000-1',
        'name': 'Suministros del Sur',
        'payment_terms': 'Contado',
    }
    data.update(overrides)
    return data


def _make_request(session, ctx, supplier, company, status):
    document = QuoteRequest(
        account_id=ctx.account_id, supplier_id=supplier.id, company_id=company.id,
        currency='USD', status=status, created_by=ctx.user_email
    )
    session.add(document)
    session.commit()
    return document


def _make_order(session, ctx, supplier, company, status, number):
    document = PurchaseOrder(
        account_id=ctx.account_id, supplier_id=supplier.id, company_id=company.id,
        sequence_number=number, currency='USD', status=status, created_by=ctx.user_email,
        payment_terms='Contado', credit_days=0
    )
    session.add(document)
    session.commit()
    return document


class TestSupplierCodes:

    def test_first_supplier_gets_p001(self, session, ctx):
        supplier = supplier_service.create_supplier(session, ctx, _supplier_data())
        assert supplier.code == 'P001'

    def test_code_follows_highest_existing(self, session, ctx):
        supplier_service.create_supplier(session, ctx, _supplier_data(code='P007'))
        supplier = supplier_service.create_supplier(session, ctx, _supplier_data(rif='J300000002'))
        assert supplier.code == 'P008'

    def test_codes_are_per_account(self, session, ctx, ctx2):
        supplier_service.create_supplier(session, ctx, _supplier_data())
        other = supplier_service.create_supplier(session, ctx2, _supplier_data())
        assert other.code == 'P001'

    def test_rif_is_normalized(self, session, ctx):
        supplier = supplier_service.create_supplier(session, ctx, _supplier_data(rif='j-30000000-1'))
        assert supplier.rif == 'J300000001'


class TestSupplierValidation:

    def test_credito_requires_positive_days(self, session, ctx):
        with pytest.raises(ValidationError) as exc:
            supplier_service.create_supplier(session, ctx, _supplier_data(payment_terms='Crédito', credit_days=0))
        assert exc.value.field == 'credit_days'
        assert session.query(Supplier).count() == 0

    def test_credito_with_days_is_stored(self, session, ctx):
        supplier = supplier_service.create_supplier(
            session, ctx, _supplier_data(payment_terms='Crédito', credit_days=30)
        )
        assert supplier.payment_terms == 'Crédito'
        assert supplier.credit_days == 30
        assert supplier.custom_payment_terms is None

    def test_invalid_rif_rejected(self, session, ctx):
        with pytest.raises(ValidationError) as exc:
            supplier_service.create_supplier(session, ctx, _supplier_data(rif='123'))
        assert exc.value.field == 'rif'

    def test_invalid_email_rejected(self, session, ctx):
        with pytest.raises(ValidationError):
            supplier_service.create_supplier(session, ctx, _supplier_data(email='no-es-email'))


class TestSupplierMaterials:

    def test_create_with_materials(self, session, ctx, material1, material2):
        supplier = supplier_service.create_supplier(session, ctx, _supplier_data(), materials=[
            {'material_id': material1.id, 'specification': 'Saco 45kg'},
            {'material_id': material2.id},
        ])
        assert {sm.material_id for sm in supplier.materials} == {material1.id, material2.id}

    def test_update_diffs_materials(self, session, ctx, material1, material2):
        supplier = supplier_service.create_supplier(session, ctx, _supplier_data(), materials=[
            {'material_id': material1.id, 'specification': 'Saco 45kg'},
        ])
        supplier_service.update_supplier(session, ctx, supplier.id, _supplier_data(), materials=[
            {'material_id': material2.id, 'specification': 'Paquete 100'},
        ])

        relations = session.query(SupplierMaterial).filter_by(supplier_id=supplier.id).all()
        assert [(r.material_id, r.specification) for r in relations] == [(material2.id, 'Paquete 100')]

    def test_material_of_other_account_rejected(self, session, ctx2, material1):
        with pytest.raises(NotFoundError):
            supplier_service.create_supplier(session, ctx2, _supplier_data(), materials=[
                {'material_id': material1.id},
            ])


class TestInactiveSupplierArchivesDocuments:

    def test_inactive_archives_open_documents_only(self, session, ctx, supplier1, company1):
        draft_request = _make_request(session, ctx, supplier1, company1, 'Draft')
        sent_request = _make_request(session, ctx, supplier1, company1, 'Sent')
        approved_request = _make_request(session, ctx, supplier1, company1, 'Approved')
        draft_order = _make_order(session, ctx, supplier1, company1, 'Draft', 1)
        approved_order = _make_order(session, ctx, supplier1, company1, 'Approved', 2)

        supplier_service.update_supplier(session, ctx, supplier1.id, {
            'rif': supplier1.rif,
            'name': supplier1.name,
            'payment_terms': 'Contado',
            'status': 'Inactive',
        })

        session.expire_all()
        assert session.get(QuoteRequest, draft_request.id).status == 'Archived'
        assert session.get(QuoteRequest, sent_request.id).status == 'Archived'
        assert session.get(QuoteRequest, approved_request.id).status == 'Approved'
        assert session.get(PurchaseOrder, draft_order.id).status == 'Archived'
        assert session.get(PurchaseOrder, approved_order.id).status == 'Approved'

        actions = {log.action for log in session.query(AuditLog).all()}
        assert AuditAction.BULK_ARCHIVE_QUOTE_REQUESTS in actions
        assert AuditAction.BULK_ARCHIVE_PURCHASE_ORDERS in actions

    def test_bulk_archive_is_idempotent(self, session, ctx, supplier1, company1):
        _make_request(session, ctx, supplier1, company1, 'Draft')
        _make_order(session, ctx, supplier1, company1, 'Sent', 1)

        first = bulk_archive_by_supplier(session, ctx, supplier1.id)
        second = bulk_archive_by_supplier(session, ctx, supplier1.id)

        assert first.quote_requests == 1
        assert first.purchase_orders == 1
        assert second.total == 0

    def test_bulk_archive_leaves_other_accounts_alone(self, session, ctx, ctx2, supplier1, company1):
        _make_request(session, ctx, supplier1, company1, 'Draft')
        result = bulk_archive_by_supplier(session, ctx2, supplier1.id)
        assert result.total == 0


class TestSupplierQueries:

    def test_search_by_name_or_rif(self, session, ctx, supplier1):
        supplier_service.create_supplier(session, ctx, _supplier_data())
        assert [s.id for s in supplier_service.search_suppliers(session, ctx, 'central')] == [supplier1.id]
        assert [s.id for s in supplier_service.search_suppliers(session, ctx, 'J12345')] == [supplier1.id]

    def test_delete_supplier(self, session, ctx, supplier1):
        supplier_id = supplier1.id
        assert supplier_service.delete_supplier(session, ctx, supplier_id)
        with pytest.raises(NotFoundError):
            supplier_service.get_supplier_by_id(session, ctx, supplier_id)


class TestBulkArchiveFailure:

    def test_failed_update_counts_zero_and_writes_no_audit(self, session, ctx, supplier1, company1,
                                                           failing_bulk_archive):
        draft_request = _make_request(session, ctx, supplier1, company1, 'Draft')

        result = bulk_archive_by_supplier(session, ctx, supplier1.id)

        assert result.failed
        assert result.total == 0
        session.expire_all()
        assert session.get(QuoteRequest, draft_request.id).status == 'Draft'
        bulk_actions = {AuditAction.BULK_ARCHIVE_QUOTE_REQUESTS, AuditAction.BULK_ARCHIVE_PURCHASE_ORDERS}
        assert session.query(AuditLog).filter(AuditLog.action.in_(bulk_actions)).count() == 0

    def test_supplier_is_still_saved_as_inactive(self, session, ctx, supplier1, company1, failing_bulk_archive):
        supplier_id = supplier1.id
        updated = supplier_service.update_supplier(session, ctx, supplier_id, {
            'rif': supplier1.rif,
            'name': supplier1.name,
            'payment_terms': 'Contado',
            'status': 'Inactive',
        })

        assert updated is not None
        session.expire_all()
        assert session.get(Supplier, supplier_id).status == 'Inactive'
