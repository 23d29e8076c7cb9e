# sales.py - sales listing and the revenue figures shown on the sales page

from datetime import datetime
from decimal import Decimal

from models import Sale

PAYMENT_METHOD_LABELS = {
    'efectivo': 'Cash',
    'tarjeta': 'Card',
    'transferencia': 'Bank transfer',
    'paypal': 'PayPal',
}


def list_sales():
    return Sale.query.order_by(Sale.sale_date.desc()).all()


def payment_method_label(method):
    return PAYMENT_METHOD_LABELS.get(method, method)


def sales_summary(sales, now=None):
    now = now or datetime.now()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start_of_month = start_of_day.replace(day=1)

    total = sum((Decimal(s.total) for s in sales), Decimal('0'))
    today = sum((Decimal(s.total) for s in sales if s.sale_date >= start_of_day), Decimal('0'))
    month = sum((Decimal(s.total) for s in sales if s.sale_date >= start_of_month), Decimal('0'))
    count = len(sales)
    average = (total / count).quantize(Decimal('0.01')) if count else Decimal('0.00')

    return {
        'total': total,
        'count': count,
        'today': today,
        'this_month': month,
        'average': average,
    }
