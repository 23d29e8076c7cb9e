# catalog.py - categories, products and their stock for the shop and the admin pages

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from flask import current_app

from models import db, Category, SubCategory, Product, PaymentMethod, SiteSetting
import ledger

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    pass


@dataclass
class Catalog:
    categories: list = field(default_factory=list)
    sub_categories: list = field(default_factory=list)
    products: list = field(default_factory=list)
    stock: dict = field(default_factory=dict)

    def stock_for(self, product_name):
        return self.stock.get(product_name, 0)


def load_catalog():
    return Catalog(
        categories=Category.query.order_by(Category.name).all(),
        sub_categories=SubCategory.query.order_by(SubCategory.name).all(),
        products=Product.query.order_by(Product.name).all(),
        stock=ledger.stock_snapshot(),
    )


def filter_products(catalog, category=None, sub_category=None):
    # the shop only lists products that can actually be bought
    result = []
    for product in catalog.products:
        if category and product.category_name != category:
            continue
        if sub_category and product.sub_category_name != sub_category:
            continue
        if catalog.stock_for(product.name) <= 0:
            continue
        result.append(product)
    return result


# availability report for the admin area

def stock_status(balance, threshold=None):
    if threshold is None:
        threshold = current_app.config['LOW_STOCK_THRESHOLD']
    if balance <= 0:
        return 'out'
    if balance < threshold:
        return 'low'
    return 'available'


def stock_availability(search='', category=''):
    stock = ledger.stock_snapshot()
    search = (search or '').strip().lower()
    rows = []
    for product in Product.query.order_by(Product.name).all():
        if category and product.category_name != category:
            continue
        if search:
            in_name = search in product.name.lower()
            in_sub = search in (product.sub_category_name or '').lower()
            if not (in_name or in_sub):
                continue
        balance = stock.get(product.name, 0)
        rows.append({
            'product_name': product.name,
            'category_name': product.category_name,
            'sub_category_name': product.sub_category_name,
            'balance': balance,
            'status': stock_status(balance),
        })
    return rows


def availability_summary(rows):
    return {
        'total': len(rows),
        'in_stock': sum(1 for r in rows if r['balance'] > 0),
        'low': sum(1 for r in rows if r['status'] == 'low'),
        'out': sum(1 for r in rows if r['balance'] <= 0),
    }


# admin create / update / delete

def _parse_price(value):
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise CatalogError('Price must be a number')
    if not price.is_finite() or price < 0:
        raise CatalogError('Price cannot be negative')
    return price.quantize(Decimal('0.01'))


def _required(value, label):
    value = (value or '').strip()
    if not value:
        raise CatalogError(f'{label} is required')
    return value


def save_product(form, product=None):
    name = _required(form.get('name'), 'Product name')
    price = _parse_price(form.get('price', ''))

    clash = Product.query.filter(Product.name == name)
    if product is not None:
        clash = clash.filter(Product.id != product.id)
    if clash.first():
        raise CatalogError(f'A product named {name} already exists')

    if product is None:
        product = Product()
        db.session.add(product)
    elif product.name != name:
        # the ledger is keyed by name, move its rows in the same commit
        ledger.rename_product(product.name, name)
    product.name = name
    product.price = price
    product.category_name = form.get('category_name') or None
    product.sub_category_name = form.get('sub_category_name') or None
    product.description = form.get('description') or None
    product.image_url = form.get('image_url') or None
    db.session.commit()
    logger.info('product saved: %s', name)
    return product


def delete_product(product):
    db.session.delete(product)
    db.session.commit()
    logger.info('product deleted: %s', product.name)


def save_category(name, description=None, category_id=None):
    name = _required(name, 'Category name')
    clash = Category.query.filter_by(name=name).first()
    if clash and str(clash.id) != str(category_id):
        raise CatalogError(f'A category named {name} already exists')
    if category_id:
        category = db.get_or_404(Category, category_id)
    else:
        category = Category()
        db.session.add(category)
    category.name = name
    category.description = description or None
    db.session.commit()
    return category


def delete_category(category_id):
    category = db.get_or_404(Category, category_id)
    db.session.delete(category)
    db.session.commit()
    return category


def save_subcategory(name, category_name=None, description=None, sub_category_id=None):
    name = _required(name, 'Subcategory name')
    if sub_category_id:
        sub = db.get_or_404(SubCategory, sub_category_id)
    else:
        sub = SubCategory()
        db.session.add(sub)
    sub.name = name
    sub.category_name = category_name or None
    sub.description = description or None
    db.session.commit()
    return sub


def delete_subcategory(sub_category_id):
    sub = db.get_or_404(SubCategory, sub_category_id)
    db.session.delete(sub)
    db.session.commit()
    return sub


# checkout and contact helpers

def active_payment_methods():
    return (PaymentMethod.query
            .filter_by(active=True)
            .order_by(PaymentMethod.name)
            .all())


def get_setting(name, default=None):
    setting = SiteSetting.query.filter_by(name=name).first()
    if setting and setting.value:
        return setting.value
    return default
