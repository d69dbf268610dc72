"""HTTP tests for the JSON API."""
from io import BytesIO

from openpyxl import Workbook

from compras.models import PurchaseOrder, Supplier
from compras.services.lifecycle import ARCHIVE_FAILED_MESSAGE


def _xlsx(headers, rows):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(headers)
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer


class TestAuthentication:

    def test_requires_login(self, client):
        response = client.get('/api/suppliers/')
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_requires_account(self, client, profile1):
        with client.session_transaction() as sess:
            sess['user_id'] = profile1.id
        response = client.get('/api/suppliers/')
        assert response.status_code == 403

    def test_account_of_other_profile_is_ignored(self, client, profile1, account2):
        with client.session_transaction() as sess:
            sess['user_id'] = profile1.id
            sess['account_id'] = account2.id
        assert client.get('/api/suppliers/').status_code == 403


class TestSupplierEndpoints:

    def test_create_and_list(self, authenticated_client):
        response = authenticated_client.post('/api/suppliers/', json={
            'rif': 'J-40000000-4',
            'name': 'Lácteos Andinos',
            'payment_terms': 'Crédito',
            'credit_days': 15,
        })
        assert response.status_code == 201
        assert response.get_json()['data']['code'] == 'P001'

        listing = authenticated_client.get('/api/suppliers/').get_json()['data']
        assert [s['name'] for s in listing] == ['Lácteos Andinos']

    def test_validation_error_is_400_with_field(self, authenticated_client):
        response = authenticated_client.post('/api/suppliers/', json={
            'rif': 'J-40000000-4',
            'name': 'Lácteos Andinos',
            'payment_terms': 'Crédito',
            'credit_days': 0,
        })
        assert response.status_code == 400
        body = response.get_json()
        assert body['status'] == 'error'
        assert body['field'] == 'credit_days'

    def test_foreign_supplier_is_404(self, authenticated_client, supplier2):
        response = authenticated_client.get(f'/api/suppliers/{supplier2.id}')
        assert response.status_code == 404

    def test_search(self, authenticated_client, supplier1):
        response = authenticated_client.get('/api/suppliers/?q=central')
        assert [s['id'] for s in response.get_json()['data']] == [supplier1.id]

    def test_inactive_with_failed_archive_reports_warning(self, authenticated_client, session, supplier1, company1,
                                                          failing_bulk_archive):
        supplier_id = supplier1.id
        response = authenticated_client.put(f'/api/suppliers/{supplier_id}', json={
            'rif': supplier1.rif,
            'name': supplier1.name,
            'payment_terms': 'Contado',
            'status': 'Inactive',
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body['data']['status'] == 'Inactive'
        assert body['warnings'] == [ARCHIVE_FAILED_MESSAGE, ARCHIVE_FAILED_MESSAGE]

        # warnings are delivered once
        assert 'warnings' not in authenticated_client.get('/api/suppliers/').get_json()


class TestDocumentEndpoints:

    def _create_order(self, client, supplier, company, material):
        return client.post('/api/purchase-orders/', json={
            'supplier_id': supplier.id,
            'company_id': company.id,
            'currency': 'USD',
            'items': [
                {'material_id': material.id, 'material_name': material.name, 'quantity': 2, 'unit_price': '10'},
            ],
        })

    def test_create_order_with_totals(self, authenticated_client, supplier1, company1, material1):
        response = self._create_order(authenticated_client, supplier1, company1, material1)
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['sequence_number'] == 1
        assert data['totals']['total'] == 23.2
        assert data['price_history_entries'] == 1

    def test_illegal_transition_is_409(self, authenticated_client, supplier1, company1, material1):
        order_id = self._create_order(authenticated_client, supplier1, company1, material1).get_json()['data']['id']
        response = authenticated_client.patch(f'/api/purchase-orders/{order_id}/status', json={'status': 'Approved'})
        assert response.status_code == 409
        assert response.get_json()['from'] == 'Draft'

    def test_archive_and_unarchive(self, authenticated_client, session, supplier1, company1, material1):
        order_id = self._create_order(authenticated_client, supplier1, company1, material1).get_json()['data']['id']
        authenticated_client.patch(f'/api/purchase-orders/{order_id}/status', json={'status': 'Sent'})

        assert authenticated_client.post(f'/api/purchase-orders/{order_id}/archive').status_code == 200
        archived = authenticated_client.get('/api/purchase-orders/?status=Archived').get_json()['data']
        assert [o['id'] for o in archived] == [order_id]

        assert authenticated_client.post(f'/api/purchase-orders/{order_id}/unarchive').status_code == 200
        session.expire_all()
        assert session.get(PurchaseOrder, order_id).status == 'Draft'

    def test_quote_request_flow(self, authenticated_client, supplier1, company1):
        response = authenticated_client.post('/api/quote-requests/', json={
            'supplier_id': supplier1.id,
            'company_id': company1.id,
            'items': [{'material_name': 'HARINA', 'quantity': 5}],
        })
        assert response.status_code == 201
        request_id = response.get_json()['data']['id']

        response = authenticated_client.patch(f'/api/quote-requests/{request_id}/status', json={'status': 'Sent'})
        assert response.status_code == 200
        assert authenticated_client.get(f'/api/quote-requests/{request_id}').get_json()['data']['status'] == 'Sent'


class TestBulkUploadEndpoint:

    def test_upload_suppliers(self, authenticated_client, session):
        stream = _xlsx(['Código', 'RIF', 'Nombre', 'Términos de Pago'], [
            [None, 'J-50000000-5', 'Proveedor Excel', 'Contado'],
            [None, 'malo', 'Sin RIF', 'Contado'],
        ])
        response = authenticated_client.post('/api/bulk-upload/', data={
            'type': 'supplier',
            'file': (stream, 'proveedores.xlsx'),
        }, content_type='multipart/form-data')

        assert response.status_code == 200
        data = response.get_json()['data']
        assert (data['successCount'], data['failureCount']) == (1, 1)
        assert data['errors'][0]['row'] == 3
        assert session.query(Supplier).filter_by(rif='J500000005').count() == 1

    def test_rejects_other_extensions(self, authenticated_client):
        response = authenticated_client.post('/api/bulk-upload/', data={
            'type': 'supplier',
            'file': (BytesIO(b'a,b'), 'proveedores.csv'),
        }, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_template_download(self, authenticated_client):
        response = authenticated_client.get('/api/bulk-upload/template/supplier')
        assert response.status_code == 200
        assert response.mimetype.endswith('spreadsheetml.sheet')


class TestAdminEndpoints:

    def test_wrong_pin_is_403(self, authenticated_client):
        response = authenticated_client.post('/api/admin/reset-data', json={'pin': '999999'})
        assert response.status_code == 403
        assert response.get_json()['message'] == 'PIN de seguridad incorrecto.'

    def test_set_po_sequence(self, authenticated_client):
        response = authenticated_client.post('/api/admin/po-sequence', json={'startNumber': 40, 'pin': '123456'})
        assert response.status_code == 200
        next_number = authenticated_client.get('/api/purchase-orders/next-number').get_json()['data']
        assert next_number == {'next_number': 40}


class TestCartEndpoints:

    def test_add_and_checkout(self, authenticated_client, supplier1, company1, material1):
        response = authenticated_client.post('/api/cart/items', json={
            'material_id': material1.id, 'material_name': material1.name, 'quantity': 3, 'unit_price': '2.50',
        })
        assert response.status_code == 201
        assert response.get_json()['data']['totals']['base_imponible'] == 7.5

        response = authenticated_client.post('/api/cart/checkout', json={
            'supplier_id': supplier1.id, 'company_id': company1.id,
        })
        assert response.status_code == 201
        assert len(response.get_json()['data']['items']) == 1

        cart = authenticated_client.get('/api/cart/').get_json()['data']
        assert cart['items'] == []

    def test_remove_missing_line_is_400(self, authenticated_client):
        assert authenticated_client.delete('/api/cart/items/3').status_code == 400


class TestMiscEndpoints:

    def test_compare_quotes(self, authenticated_client):
        response = authenticated_client.post('/api/quote-comparisons/compare', json={
            'global_exchange_rate': 40,
            'items': [{'material_name': 'HARINA', 'quotes': [
                {'supplier_id': 1, 'unit_price': 12, 'currency': 'USD'},
                {'supplier_id': 2, 'unit_price': 400, 'currency': 'VES'},
            ]}],
        })
        result = response.get_json()['data'][0]
        assert result['best_price'] == 10.0
        assert [r['is_best'] for r in result['results']] == [False, True]

    def test_compare_flags_non_numeric_price(self, authenticated_client):
        response = authenticated_client.post('/api/quote-comparisons/compare', json={
            'items': [{'material_name': 'HARINA', 'quotes': [
                {'supplier_id': 1, 'unit_price': 'abc', 'currency': 'USD'},
            ]}],
        })
        assert response.status_code == 200
        result = response.get_json()['data'][0]['results'][0]
        assert result['is_valid'] is False
        assert result['error'] == 'Datos incompletos o inválidos.'

    def test_saving_non_numeric_price_is_400(self, authenticated_client, supplier1, material1):
        response = authenticated_client.post('/api/quote-comparisons/', json={
            'name': 'Harina marzo',
            'items': [{'material_id': material1.id, 'quotes': [
                {'supplier_id': supplier1.id, 'unit_price': 'abc'},
            ]}],
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'items'

    def test_audit_log(self, authenticated_client, supplier1):
        logs = authenticated_client.get('/api/audit-log/?table=supplier').get_json()['data']
        assert logs[0]['action'] == 'CREATE_SUPPLIER'

    def test_unknown_audit_action_is_400(self, authenticated_client):
        assert authenticated_client.get('/api/audit-log/?action=NADA').status_code == 400

    def test_dashboard(self, authenticated_client):
        data = authenticated_client.get('/api/dashboard/').get_json()['data']
        assert data == {'top_materials': [], 'top_suppliers': []}

    def test_metrics(self, client):
        response = client.get('/metrics')
        assert response.status_code == 200
        assert b'compras_api_requests_total' in response.data

    def test_metrics_count_created_orders(self, authenticated_client, supplier1, company1, material1):
        authenticated_client.post('/api/purchase-orders/', json={
            'supplier_id': supplier1.id,
            'company_id': company1.id,
            'items': [{'material_id': material1.id, 'material_name': material1.name, 'quantity': 1, 'unit_price': '3'}],
        })
        body = authenticated_client.get('/metrics').data
        assert b'compras_documents_created_total{document_type="purchase_order"}' in body
        assert b'endpoint="purchase_orders.create_purchase_order"' in body
