# this file defines the database structure for the storefront and the admin area
# catalogue tables, the stock ledger, orders with their items, and sales

import uuid
from datetime import datetime
from decimal import Decimal

from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

# order lifecycle, new orders always start as pending
ORDER_STATUSES = ('pending', 'confirmed', 'shipped', 'completed', 'sold', 'cancelled')
STATUS_PENDING = 'pending'
STATUS_SOLD = 'sold'

# stock ledger movement types
MOVEMENT_IN = 'entrada'
MOVEMENT_OUT = 'salida'


def _new_id():
    return str(uuid.uuid4())


# back-office accounts, only role 'admin' may sign in
class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(120))
    role = db.Column(db.String(20), nullable=False, default='customer')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == 'admin'


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.String(500))


class SubCategory(db.Model):
    __tablename__ = 'sub_categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    category_name = db.Column(db.String(100))
    description = db.Column(db.String(500))


# products are referenced by name everywhere else (cart, order items, stock)
class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    category_name = db.Column(db.String(100))
    sub_category_name = db.Column(db.String(100))
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    image_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f'<Product {self.name}>'


# append-only ledger, the latest row per product holds its current balance
class StockMovement(db.Model):
    __tablename__ = 'stock'

    id = db.Column(db.Integer, primary_key=True)
    product_name = db.Column(db.String(200), nullable=False, index=True)
    movement_type = db.Column(db.String(10), nullable=False)  # entrada / salida
    quantity = db.Column(db.Integer, nullable=False)
    prior_balance = db.Column(db.Integer, nullable=False, default=0)
    new_balance = db.Column(db.Integer, nullable=False, default=0)
    note = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.now, index=True)

    def __repr__(self):
        return f'<StockMovement {self.movement_type} {self.quantity} {self.product_name}>'


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    # sender: the person placing the order
    sender_fullname = db.Column(db.String(200), nullable=False)
    sender_country = db.Column(db.String(100))
    sender_email = db.Column(db.String(120))
    sender_contact = db.Column(db.String(50))
    # receiver: the person collecting the goods
    receiver_fullname = db.Column(db.String(200), nullable=False)
    receiver_id_number = db.Column(db.String(50))
    receiver_contact = db.Column(db.String(50))
    receiver_address = db.Column(db.String(500))
    receiver_extras = db.Column(db.String(500))
    payment_method = db.Column(db.String(50))
    order_date = db.Column(db.DateTime, default=datetime.now)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))

    items = db.relationship('OrderItem', backref='order', lazy=True, order_by='OrderItem.id')

    @property
    def short_id(self):
        return self.id[:8]


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey('orders.id'), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)  # unit price at order time

    @property
    def subtotal(self):
        return self.price * self.quantity


# one sale per order, enforced by the unique order_id
class Sale(db.Model):
    __tablename__ = 'sales'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey('orders.id'), unique=True, nullable=False)
    sender_fullname = db.Column(db.String(200))
    sale_date = db.Column(db.DateTime, default=datetime.now)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(50), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)

    order = db.relationship('Order', backref=db.backref('sale', uselist=False))


class PaymentMethod(db.Model):
    __tablename__ = 'payment_methods'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    description = db.Column(db.String(200))
    active = db.Column(db.Boolean, default=True)


# key/value pairs such as the WhatsApp phone number ('Telefono')
class SiteSetting(db.Model):
    __tablename__ = 'site_settings'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    value = db.Column(db.String(500))
