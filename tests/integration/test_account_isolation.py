"""
Critical integration tests for account isolation.
Records of another account must behave exactly like missing ones.
"""
import pytest

from compras.exceptions import NotFoundError, UnauthorizedError
from compras.services import (
    supplier_service, material_service, company_service,
    quote_request_service, purchase_order_service, profile_service
)
from compras.services.audit_service import get_audit_logs
from compras.services.ownership import AccountContext


class TestContext:

    def test_context_requires_account(self):
        with pytest.raises(UnauthorizedError):
            AccountContext(account_id=None)


class TestCatalogIsolation:

    def test_supplier_lists_are_scoped(self, session, ctx, ctx2, supplier1, supplier2):
        assert [s.id for s in supplier_service.get_all_suppliers(session, ctx)] == [supplier1.id]
        assert [s.id for s in supplier_service.get_all_suppliers(session, ctx2)] == [supplier2.id]

    def test_foreign_supplier_is_not_found(self, session, ctx2, supplier1):
        with pytest.raises(NotFoundError):
            supplier_service.get_supplier_by_id(session, ctx2, supplier1.id)

    def test_foreign_supplier_cannot_be_deleted(self, session, ctx2, supplier1):
        with pytest.raises(NotFoundError):
            supplier_service.delete_supplier(session, ctx2, supplier1.id)

    def test_foreign_material_cannot_be_updated(self, session, ctx2, material1):
        with pytest.raises(NotFoundError):
            material_service.update_material(session, ctx2, material1.id, {'name': 'X'})

    def test_company_search_is_scoped(self, session, ctx, ctx2, company1, company2):
        assert [c.id for c in company_service.search_companies(session, ctx, 'Procesadora')] == [company1.id]


class TestDocumentIsolation:

    def test_cannot_use_foreign_supplier_in_request(self, session, ctx2, supplier1, company2):
        with pytest.raises(NotFoundError):
            quote_request_service.create_quote_request(session, ctx2, {
                'supplier_id': supplier1.id, 'company_id': company2.id
            }, [{'material_name': 'HARINA', 'quantity': 1}])

    def test_cannot_change_foreign_order_status(self, session, ctx, ctx2, supplier1, company1):
        order = purchase_order_service.create_purchase_order(session, ctx, {
            'supplier_id': supplier1.id, 'company_id': company1.id
        }, [{'material_name': 'HARINA', 'quantity': 1, 'unit_price': 1}])

        with pytest.raises(NotFoundError):
            purchase_order_service.update_purchase_order_status(session, ctx2, order.id, 'Sent')
        assert order.status == 'Draft'

    def test_order_numbers_are_per_account(self, session, ctx, ctx2, supplier1, supplier2, company1, company2):
        first = purchase_order_service.create_purchase_order(session, ctx, {
            'supplier_id': supplier1.id, 'company_id': company1.id
        }, [{'material_name': 'HARINA', 'quantity': 1, 'unit_price': 1}])
        other = purchase_order_service.create_purchase_order(session, ctx2, {
            'supplier_id': supplier2.id, 'company_id': company2.id
        }, [{'material_name': 'HARINA', 'quantity': 1, 'unit_price': 1}])
        assert first.sequence_number == other.sequence_number == 1


class TestAuditAndProfiles:

    def test_audit_log_is_scoped(self, session, ctx, ctx2, supplier1, supplier2):
        logs = get_audit_logs(session, ctx)
        assert logs
        assert all(log.account_id == ctx.account_id for log in logs)

    def test_profile_of_other_account_is_not_found(self, session, ctx, profile2):
        with pytest.raises(NotFoundError):
            profile_service.update_profile(session, ctx, profile2.id, {'first_name': 'X'})

    def test_username_is_lowercased(self, session, ctx, profile1):
        profile = profile_service.update_profile(session, ctx, profile1.id, {'username': 'Comprador.Uno'})
        assert profile.username == 'comprador.uno'
