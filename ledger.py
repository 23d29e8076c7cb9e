# ledger.py - stock movement log and the running balance per product
#
# balances are never stored on the product: the most recent movement row
# for a product carries its current balance

import logging
from decimal import Decimal, InvalidOperation

from models import db, StockMovement, MOVEMENT_IN, MOVEMENT_OUT

logger = logging.getLogger(__name__)

MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT)


class LedgerError(Exception):
    pass


def _latest_movement(product_name):
    return (StockMovement.query
            .filter_by(product_name=product_name)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .first())


def current_balance(product_name):
    last = _latest_movement(product_name)
    return last.new_balance if last else 0


def rename_product(old_name, new_name):
    # caller commits
    moved = (StockMovement.query
             .filter_by(product_name=old_name)
             .update({'product_name': new_name}, synchronize_session='fetch'))
    if moved:
        logger.info('moved %s stock rows from %s to %s', moved, old_name, new_name)
    return moved


def _parse_quantity(value):
    # stock is counted in whole units
    try:
        quantity = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise LedgerError('Quantity must be a whole number')
    if not quantity.is_finite() or quantity != quantity.to_integral_value():
        raise LedgerError('Quantity must be a whole number')
    return int(quantity)


def record_movement(product_name, movement_type, quantity, note=None, commit=True):
    """Append one movement and return it.

    The new balance is the previous balance plus (entrada) or minus (salida)
    the quantity. Balances may go negative. With commit=False the row is only
    flushed so the caller can keep it inside a larger transaction.
    """
    if not product_name:
        raise LedgerError('A product is required')
    if movement_type not in MOVEMENT_TYPES:
        raise LedgerError(f'Unknown movement type: {movement_type}')
    quantity = _parse_quantity(quantity)
    if quantity <= 0:
        raise LedgerError('Quantity must be greater than zero')

    prior = current_balance(product_name)
    if movement_type == MOVEMENT_IN:
        new = prior + quantity
    else:
        new = prior - quantity

    movement = StockMovement(
        product_name=product_name,
        movement_type=movement_type,
        quantity=quantity,
        prior_balance=prior,
        new_balance=new,
        note=note or None,
    )
    db.session.add(movement)
    if commit:
        db.session.commit()
    else:
        db.session.flush()

    if new < 0:
        logger.warning('stock for %s went negative (%s)', product_name, new)
    logger.info('stock %s %s x%s: %s -> %s', movement_type, product_name, quantity, prior, new)
    return movement


def stock_snapshot():
    # product name -> current balance, later rows overwrite earlier ones
    snapshot = {}
    rows = StockMovement.query.order_by(StockMovement.created_at, StockMovement.id).all()
    for row in rows:
        snapshot[row.product_name] = row.new_balance
    return snapshot


def list_movements():
    return (StockMovement.query
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .all())
