from decimal import Decimal

from conftest import add_product, add_payment_method
import ledger
from models import db, Order, OrderItem, Product, Sale, StockMovement, MOVEMENT_OUT

SENDER = {'sender_fullname': 'Ana Pérez', 'sender_country': 'USA',
          'sender_email': 'ana@example.com', 'sender_contact': '555'}
RECEIVER = {'receiver_fullname': 'Luis', 'receiver_id_number': '850101',
            'receiver_contact': '5355', 'receiver_address': 'Calle 1'}


def seed(app):
    with app.app_context():
        ids = {
            'rice': add_product('Arroz', '10', stock=5, category='Alimentos').id,
            'oil': add_product('Aceite', '5', stock=1, category='Alimentos').id,
            'soap': add_product('Jabón', '1.50', stock=0, category='Aseo').id,
        }
        add_payment_method('efectivo')
        add_payment_method('transferencia')
    return ids


def test_storefront_lists_products_in_stock(app, client):
    seed(app)
    response = client.get('/')
    assert response.status_code == 200
    assert b'Arroz' in response.data
    assert 'Jabón'.encode() not in response.data


def test_add_out_of_stock_product_is_refused(app, client):
    ids = seed(app)
    response = client.post(f'/cart/add/{ids["soap"]}', follow_redirects=True)
    assert b'out of stock' in response.data
    with client.session_transaction() as sess:
        assert not sess.get('cart')


def test_cart_ceiling_over_http(app, client):
    ids = seed(app)
    client.post(f'/cart/add/{ids["oil"]}')
    response = client.post(f'/cart/add/{ids["oil"]}', follow_redirects=True)
    assert b'no more stock' in response.data

    response = client.post('/cart/update', data={'product_name': 'Aceite', 'quantity': '3'},
                           follow_redirects=True)
    assert b'Not enough stock' in response.data
    with client.session_transaction() as sess:
        assert sess['cart'][0]['quantity'] == 1

    client.post('/cart/update', data={'product_name': 'Aceite', 'quantity': '0'})
    with client.session_transaction() as sess:
        assert sess['cart'] == []


def test_checkout_end_to_end(app, client):
    ids = seed(app)
    client.post(f'/cart/add/{ids["rice"]}')
    client.post(f'/cart/add/{ids["rice"]}')
    client.post(f'/cart/add/{ids["oil"]}')

    assert b'25.00' in client.get('/cart').data

    client.post('/checkout', data=SENDER)
    client.post('/checkout', data=RECEIVER)
    response = client.post('/checkout', data={'payment_method': 'transferencia'})
    assert response.status_code == 302
    assert '/placed' in response.headers['Location']

    page = client.get(response.headers['Location'])
    assert b'https://wa.me/17868830056?text=' in page.data

    with app.app_context():
        order = Order.query.one()
        assert order.total == Decimal('25.00')
        assert order.payment_method == 'transferencia'
        assert OrderItem.query.count() == 2
        assert StockMovement.query.filter_by(movement_type=MOVEMENT_OUT).count() == 2
        assert ledger.current_balance('Arroz') == 3
        assert ledger.current_balance('Aceite') == 0

    with client.session_transaction() as sess:
        assert 'cart' not in sess
        assert 'checkout' not in sess


def test_checkout_validation_keeps_step(app, client):
    ids = seed(app)
    client.post(f'/cart/add/{ids["rice"]}')
    response = client.post('/checkout', data=dict(SENDER, sender_email=''), follow_redirects=True)
    assert b'Please fill in all required fields' in response.data
    with client.session_transaction() as sess:
        assert sess.get('checkout', {}).get('step', 1) == 1

    client.post('/checkout', data=SENDER)
    client.post('/checkout', data={'action': 'back'})
    with client.session_transaction() as sess:
        assert sess['checkout']['step'] == 1


def test_checkout_with_empty_cart_redirects(client):
    response = client.get('/checkout')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/cart')


def test_admin_marks_order_sold_once(app, client, admin_client):
    ids = seed(app)
    client.post(f'/cart/add/{ids["rice"]}')
    client.post('/checkout', data=SENDER)
    client.post('/checkout', data=RECEIVER)
    client.post('/checkout', data={'payment_method': 'efectivo'})

    with app.app_context():
        order_id = Order.query.one().id

    for _ in range(2):
        response = admin_client.post(f'/admin/orders/{order_id}/status', data={'status': 'sold'})
        assert response.status_code == 302

    with app.app_context():
        assert Sale.query.count() == 1
        assert Sale.query.one().total == Decimal('10.00')

    assert b'10.00' in admin_client.get('/admin/sales').data
    assert admin_client.get(f'/admin/orders/{order_id}').status_code == 200
    assert admin_client.get('/admin/orders/nope').status_code == 404


def test_admin_invalid_status(app, admin_client):
    response = admin_client.post('/admin/orders/whatever/status', data={'status': 'lost'},
                                 follow_redirects=True)
    assert b'Unknown order status' in response.data


def test_admin_records_stock_movement(app, admin_client):
    seed(app)
    response = admin_client.post('/admin/stock', data={
        'product_name': 'Jabón', 'movement_type': 'entrada', 'quantity': '12', 'note': 'compra'},
        follow_redirects=True)
    assert response.status_code == 200
    assert b'now has 12' in response.data

    response = admin_client.post('/admin/stock', data={
        'product_name': 'Jabón', 'movement_type': 'salida', 'quantity': '0'}, follow_redirects=True)
    assert b'greater than zero' in response.data

    with app.app_context():
        assert ledger.current_balance('Jabón') == 12


def test_admin_product_crud(app, admin_client):
    admin_client.post('/admin/products', data={'name': 'Café', 'price': '3.25'})
    with app.app_context():
        product_id = Product.query.filter_by(name='Café').one().id

    admin_client.post(f'/admin/products/{product_id}/edit', data={'name': 'Café molido', 'price': '3.50'})
    with app.app_context():
        assert db.session.get(Product, product_id).price == Decimal('3.50')

    response = admin_client.post('/admin/products', data={'name': 'Té', 'price': '-1'}, follow_redirects=True)
    assert b'cannot be negative' in response.data

    admin_client.post(f'/admin/products/{product_id}/delete')
    with app.app_context():
        assert Product.query.count() == 0


def test_admin_pages_render(app, admin_client):
    seed(app)
    for path in ('/admin', '/admin/orders', '/admin/sales', '/admin/products',
                 '/admin/classification', '/admin/stock', '/admin/availability?q=arr'):
        assert admin_client.get(path).status_code == 200, path
    assert b'Low stock' in admin_client.get('/admin/availability').data
