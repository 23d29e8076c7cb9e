# cart.py - shopping cart kept in the visitor's session until checkout
#
# quantities are checked against the stock known when the item was added,
# nothing here reserves stock

import logging
from dataclasses import dataclass
from decimal import Decimal

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


class CartError(Exception):
    pass


class OutOfStockError(CartError):
    pass


class NoMoreStockError(CartError):
    pass


class InsufficientStockError(CartError):
    pass


@dataclass
class CartItem:
    product_name: str
    price: Decimal
    quantity: int
    stock_available: int
    image_url: str = None

    @property
    def subtotal(self):
        return self.price * self.quantity


class Cart:
    def __init__(self, items=None):
        self.items = list(items or [])

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def find(self, product_name):
        for item in self.items:
            if item.product_name == product_name:
                return item
        return None

    def add(self, product, available_stock):
        """Add one unit of product, bounded by the stock it currently has."""
        available_stock = int(available_stock or 0)
        if available_stock <= 0:
            raise OutOfStockError('This product is out of stock')

        item = self.find(product.name)
        if item:
            if item.quantity >= available_stock:
                raise NoMoreStockError('There is no more stock available for this product')
            item.quantity += 1
            item.stock_available = available_stock
            return item

        item = CartItem(
            product_name=product.name,
            price=Decimal(str(product.price)),
            quantity=1,
            stock_available=available_stock,
            image_url=product.image_url,
        )
        self.items.append(item)
        return item

    def set_quantity(self, product_name, quantity):
        quantity = int(quantity)
        if quantity <= 0:
            self.remove(product_name)
            return None

        item = self.find(product_name)
        if item is None:
            raise CartError(f'{product_name} is not in the cart')
        if quantity > item.stock_available:
            raise InsufficientStockError('Not enough stock available')
        item.quantity = quantity
        return item

    def remove(self, product_name):
        self.items = [item for item in self.items if item.product_name != product_name]

    def clear(self):
        self.items = []

    @property
    def count(self):
        return len(self.items)

    @property
    def total(self):
        total = sum((item.subtotal for item in self.items), Decimal('0'))
        return total.quantize(CENTS)

    # session storage, prices travel as strings to stay exact
    def to_session(self):
        return [
            {
                'product_name': item.product_name,
                'price': str(item.price),
                'quantity': item.quantity,
                'stock_available': item.stock_available,
                'image_url': item.image_url,
            }
            for item in self.items
        ]

    @classmethod
    def from_session(cls, data):
        items = []
        for row in data or []:
            try:
                items.append(CartItem(
                    product_name=row['product_name'],
                    price=Decimal(row['price']),
                    quantity=int(row['quantity']),
                    stock_available=int(row['stock_available']),
                    image_url=row.get('image_url'),
                ))
            except (KeyError, TypeError, ValueError, ArithmeticError):
                logger.warning('dropping malformed cart row: %r', row)
        return cls(items)
