# orders.py - order submission from the cart and the admin status workflow
#
# submitting writes the order, its items and one stock debit per item in a
# single transaction; moving an order into 'sold' records its sale once

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import (db, Order, OrderItem, Sale, ORDER_STATUSES, STATUS_PENDING,
                    STATUS_SOLD, MOVEMENT_OUT)
from checkout import FIELDS as ORDER_FIELDS
import ledger

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = 'efectivo'


class OrderError(Exception):
    pass


class OrderSubmissionError(OrderError):
    pass


class OrderNotFoundError(OrderError):
    pass


class InvalidStatusError(OrderError):
    pass


class SaleError(OrderError):
    pass


def submit_order(cart, form_data):
    if not len(cart):
        raise OrderSubmissionError('Your cart is empty')

    try:
        order = Order(status=STATUS_PENDING, total=cart.total)
        for name in ORDER_FIELDS:
            setattr(order, name, (form_data.get(name) or '').strip() or None)
        db.session.add(order)
        db.session.flush()

        for item in cart:
            db.session.add(OrderItem(
                order_id=order.id,
                product_name=item.product_name,
                quantity=item.quantity,
                price=item.price,
            ))

        for item in cart:
            ledger.record_movement(item.product_name, MOVEMENT_OUT, item.quantity,
                                   note=f'Pedido #{order.id}', commit=False)

        db.session.commit()
    except (SQLAlchemyError, ledger.LedgerError) as e:
        db.session.rollback()
        logger.exception('order submission failed')
        raise OrderSubmissionError('We could not process your order, please try again') from e

    logger.info('order %s submitted: %s items, total %s', order.id, len(cart), order.total)
    return order


def get_order(order_id):
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError(f'Order {order_id} not found')
    return order


def list_orders():
    return Order.query.order_by(Order.order_date.desc()).all()


def change_status(order_id, new_status):
    """Move an order to a new status.

    Entering 'sold' while the order has no sale records the sale in the
    same commit as the status, so a failed sale leaves the old status.
    """
    if new_status not in ORDER_STATUSES:
        raise InvalidStatusError(f'Unknown order status: {new_status}')

    order = get_order(order_id)
    old_status = order.status
    order.status = new_status

    if new_status == STATUS_SOLD and _existing_sale(order.id) is None:
        create_sale_from_order(order.id)
    else:
        db.session.commit()
    logger.info('order %s: %s -> %s', order.id, old_status, new_status)
    return order


def _existing_sale(order_id):
    return Sale.query.filter_by(order_id=order_id).first()


def create_sale_from_order(order_id):
    """Record the sale for an order, at most once.

    Pending changes to the order are committed together with the sale.
    Returns the sale row, whether it was created now or already existed.
    """
    order = get_order(order_id)

    existing = _existing_sale(order.id)
    if existing:
        db.session.commit()
        return existing

    status = order.status
    sale = Sale(
        order_id=order.id,
        sender_fullname=order.sender_fullname,
        total=order.total,
        payment_method=order.payment_method or DEFAULT_PAYMENT_METHOD,
    )
    db.session.add(sale)
    try:
        db.session.commit()
    except IntegrityError:
        # another request recorded it between the lookup and the insert,
        # keep that sale and reapply the status lost in the rollback
        db.session.rollback()
        logger.info('sale for order %s already recorded', order_id)
        get_order(order_id).status = status
        db.session.commit()
        return Sale.query.filter_by(order_id=order_id).one()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception('could not record sale for order %s', order_id)
        raise SaleError('Could not record the sale') from e

    logger.info('sale recorded for order %s: %s', order_id, sale.total)
    return sale
