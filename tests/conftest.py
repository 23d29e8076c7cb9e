import os

# must be set before the app module is imported
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SEED_SAMPLE_DATA'] = '0'
os.environ['SECRET_KEY'] = 'test-secret'

from decimal import Decimal

import pytest

from app import app as flask_app
from models import db, User, Product, PaymentMethod, MOVEMENT_IN
import ledger

ADMIN_EMAIL = 'admin@test.com'
ADMIN_PASSWORD = 'pw-admin'


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
    yield flask_app


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


def add_product(name, price, stock=0, category=None, sub_category=None):
    product = Product(name=name, price=Decimal(price), category_name=category,
                      sub_category_name=sub_category)
    db.session.add(product)
    db.session.commit()
    if stock:
        ledger.record_movement(name, MOVEMENT_IN, stock, note='opening stock')
    return product


def add_user(email, password, role):
    user = User(email=email, full_name=email.split('@')[0], role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def add_payment_method(name, active=True):
    method = PaymentMethod(name=name, description=name.title(), active=active)
    db.session.add(method)
    db.session.commit()
    return method


@pytest.fixture
def admin_client(app, client):
    with app.app_context():
        add_user(ADMIN_EMAIL, ADMIN_PASSWORD, 'admin')
    client.post('/admin/login', data={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    return client
