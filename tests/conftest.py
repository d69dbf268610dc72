import pytest
import uuid

from sqlalchemy.exc import OperationalError

from config import Config
from compras import create_app
from compras.database import create_schema, drop_schema, get_session
from compras.models import Account, Profile, Company, Material
from compras.services import lifecycle
from compras.services.ownership import AccountContext
from compras.services.supplier_service import create_supplier


class TestConfig(Config):
    """In-memory SQLite, fixed PIN, CSRF off."""
    TESTING = True
    DEBUG = False
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    WTF_CSRF_ENABLED = False
    ADMIN_PIN = '123456'
    ENFORCE_STATUS_TRANSITIONS = True
    DEFAULT_TAX_RATE = 0.16


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    ctx.pop()


@pytest.fixture(scope='function', autouse=True)
def schema(app):
    """Fresh tables for every test."""
    create_schema()
    yield
    get_session().remove()
    drop_schema()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()


def _make_account(session, label):
    suffix = str(uuid.uuid4())[:8]
    account = Account(slug=f'test-{label}-{suffix}', name=f'Test {label} {suffix}', active=True)
    session.add(account)
    session.commit()
    return account


def _make_profile(session, account, label):
    profile = Profile(
        account_id=account.id,
        email=f'{label}@test.com',
        first_name='Usuario',
        last_name=label.title(),
        role='admin'
    )
    session.add(profile)
    session.commit()
    return profile


@pytest.fixture(scope='function')
def account1(session):
    """Create first test account."""
    return _make_account(session, 'account-1')


@pytest.fixture(scope='function')
def account2(session):
    """Create second test account for isolation tests."""
    return _make_account(session, 'account-2')


@pytest.fixture(scope='function')
def profile1(session, account1):
    return _make_profile(session, account1, 'comprador1')


@pytest.fixture(scope='function')
def profile2(session, account2):
    return _make_profile(session, account2, 'comprador2')


@pytest.fixture(scope='function')
def ctx(account1, profile1):
    """AccountContext acting on account1."""
    return AccountContext(account_id=account1.id, user_id=profile1.id, user_email=profile1.email)


@pytest.fixture(scope='function')
def ctx2(account2, profile2):
    """AccountContext acting on account2."""
    return AccountContext(account_id=account2.id, user_id=profile2.id, user_email=profile2.email)


@pytest.fixture(scope='function')
def company1(session, account1):
    company = Company(account_id=account1.id, name='Procesadora Uno C.A.', rif='J123456780')
    session.add(company)
    session.commit()
    return company


@pytest.fixture(scope='function')
def company2(session, account2):
    company = Company(account_id=account2.id, name='Procesadora Dos C.A.', rif='J987654320')
    session.add(company)
    session.commit()
    return company


@pytest.fixture(scope='function')
def material1(session, account1):
    material = Material(account_id=account1.id, code='MT001', name='HARINA DE TRIGO',
                        category='SECA', unit='KG', is_exempt=False)
    session.add(material)
    session.commit()
    return material


@pytest.fixture(scope='function')
def material2(session, account1):
    material = Material(account_id=account1.id, code='MT002', name='BOLSA PLASTICA',
                        category='EMPAQUE', unit='PAQ', is_exempt=True)
    session.add(material)
    session.commit()
    return material


@pytest.fixture(scope='function')
def supplier1(session, ctx):
    """Active supplier of account1 with cash terms."""
    return create_supplier(session, ctx, {
        'rif': 'J-12345678-9',
        'name': 'Distribuidora Central',
        'email': 'ventas@central.com',
        'payment_terms': 'Contado',
    })


@pytest.fixture(scope='function')
def supplier2(session, ctx2):
    """Supplier of account2."""
    return create_supplier(session, ctx2, {
        'rif': 'J-22222222-2',
        'name': 'Proveedor Ajeno',
        'payment_terms': 'Contado',
    })


@pytest.fixture(scope='function')
def authenticated_client(client, profile1, account1):
    """Create authenticated client for account1."""
    with client.session_transaction() as sess:
        sess['user_id'] = profile1.id
        sess['account_id'] = account1.id
    return client


class _UnreachableQuery:
    """Query whose bulk UPDATE fails as if the database connection dropped."""

    def filter(self, *criteria):
        return self

    def update(self, values, **kwargs):
        raise OperationalError('UPDATE', {}, Exception('server closed the connection unexpectedly'))


@pytest.fixture
def failing_bulk_archive(monkeypatch):
    """Every bulk archive UPDATE raises OperationalError."""
    monkeypatch.setattr(lifecycle, 'scoped_query', lambda session, model, ctx: _UnreachableQuery())
