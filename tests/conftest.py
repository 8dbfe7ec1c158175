import pytest

from unithrift import create_app
from unithrift.models import db


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'JWT_SECRET': 'test-secret',
        'ORDERS_SNAPSHOT': str(tmp_path / 'orders.json'),
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def signup(client, email='ana@school.edu', password='hunter22', name='Ana'):
    res = client.post('/api/auth/signup', json={'email': email, 'password': password, 'name': name})
    assert res.status_code == 200, res.get_json()
    return res.get_json()


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def token(client):
    return signup(client)['token']


@pytest.fixture
def seller(client):
    """A second account with one listed product."""
    session = signup(client, email='ben@school.edu', name='Ben')
    res = client.post('/api/my/products', headers=bearer(session['token']),
                      json={'name': 'Calculator', 'price': 120, 'campus': 'UPD', 'category': 'School'})
    assert res.status_code == 200
    session['product'] = res.get_json()['product']
    return session
