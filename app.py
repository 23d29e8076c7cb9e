# app.py - handles system logic and routing for the shop and the admin area
# run this file starting the server: python app.py

import logging
from decimal import Decimal

from flask import Flask, render_template, request, redirect, url_for, flash, session, abort
from flask_login import LoginManager, current_user
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from models import (db, User, Category, SubCategory, Product, PaymentMethod, SiteSetting,
                    ORDER_STATUSES, MOVEMENT_IN, MOVEMENT_OUT, STATUS_PENDING)
from auth import AuthError, sign_in, sign_out, admin_required
from cart import Cart, CartError
from checkout import CheckoutWizard, CheckoutError, STEPS
from orders import (OrderError, OrderNotFoundError, submit_order, get_order, list_orders,
                    change_status)
import catalog
import ledger
import sales as sales_report
import whatsapp

app = Flask(__name__)
app.config.from_object(Config)

logging.basicConfig(
    level=app.config['LOG_LEVEL'],
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

db.init_app(app)

# login manager setup, only the admin area uses it
login_manager = LoginManager()
login_manager.init_app(app)
login_manager.login_view = 'admin_login'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


def seed_sample_data():
    categories = [
        Category(name='Alimentos', description='Comida y despensa'),
        Category(name='Aseo', description='Higiene y limpieza'),
    ]
    subs = [
        SubCategory(name='Granos', category_name='Alimentos'),
        SubCategory(name='Aceites', category_name='Alimentos'),
        SubCategory(name='Personal', category_name='Aseo'),
    ]
    products = [
        Product(name='Arroz 5kg', category_name='Alimentos', sub_category_name='Granos', price=Decimal('10.00')),
        Product(name='Aceite de girasol 1L', category_name='Alimentos', sub_category_name='Aceites', price=Decimal('5.00')),
        Product(name='Jabón de tocador', category_name='Aseo', sub_category_name='Personal', price=Decimal('1.50')),
    ]
    methods = [
        PaymentMethod(name='efectivo', description='Efectivo'),
        PaymentMethod(name='transferencia', description='Transferencia bancaria'),
        PaymentMethod(name='paypal', description='PayPal'),
    ]
    db.session.add_all(categories + subs + products + methods)
    db.session.add(SiteSetting(name='Telefono', value=app.config['WHATSAPP_DEFAULT_PHONE']))
    db.session.commit()

    for product, qty in zip(products, (25, 12, 40)):
        ledger.record_movement(product.name, MOVEMENT_IN, qty, note='Stock inicial')
    logger.info('sample catalogue created')


# setup database and default data
with app.app_context():
    db.create_all()

    # ensure the bootstrap admin exists with the configured password
    email = app.config['ADMIN_EMAIL'].strip().lower()
    admin = User.query.filter_by(email=email).first()
    if not admin:
        admin = User(email=email, full_name=app.config['ADMIN_NAME'], role='admin')
        db.session.add(admin)
    admin.set_password(app.config['ADMIN_PASSWORD'])
    db.session.commit()

    if app.config['SEED_SAMPLE_DATA'] and Product.query.count() == 0:
        seed_sample_data()


# data store failures that escape a view: roll back, log and tell the user
@app.errorhandler(SQLAlchemyError)
def database_error(e):
    db.session.rollback()
    logger.exception('database error on %s', request.path)
    message = 'Something went wrong talking to the database, please try again.'
    if request.method == 'GET':
        return render_template('error.html', message=message), 503
    flash(message, 'danger')
    return redirect(_safe_next(url_for('index')))


def _safe_next(default):
    target = request.values.get('next') or ''
    if target.startswith('/') and not target.startswith('//'):
        return target
    return default


def _load_cart():
    return Cart.from_session(session.get('cart'))


def _save_cart(cart):
    session['cart'] = cart.to_session()


@app.context_processor
def inject_cart_count():
    return {'cart_count': len(session.get('cart') or [])}


# storefront

@app.route('/')
def index():
    selected_category = request.args.get('category') or None
    selected_sub = request.args.get('sub_category') or None
    data = catalog.load_catalog()
    products = catalog.filter_products(data, selected_category, selected_sub)
    return render_template('store/index.html', catalog=data, products=products,
                           selected_category=selected_category, selected_sub=selected_sub)


@app.route('/cart')
def view_cart():
    return render_template('store/cart.html', cart=_load_cart())


@app.route('/cart/add/<int:product_id>', methods=['POST'])
def add_to_cart(product_id):
    product = db.get_or_404(Product, product_id)
    cart = _load_cart()
    try:
        cart.add(product, ledger.current_balance(product.name))
    except CartError as e:
        logger.info('add to cart refused for %s: %s', product.name, e)
        flash(str(e), 'danger')
    else:
        _save_cart(cart)
        flash('Product added to cart', 'success')
    return redirect(_safe_next(url_for('index')))


@app.route('/cart/update', methods=['POST'])
def update_cart():
    cart = _load_cart()
    try:
        cart.set_quantity(request.form.get('product_name'), request.form.get('quantity', 0))
    except CartError as e:
        flash(str(e), 'danger')
    except ValueError:
        flash('Invalid quantity entered.', 'danger')
    else:
        _save_cart(cart)
    return redirect(_safe_next(url_for('view_cart')))


@app.route('/cart/remove', methods=['POST'])
def remove_from_cart():
    cart = _load_cart()
    cart.remove(request.form.get('product_name'))
    _save_cart(cart)
    return redirect(_safe_next(url_for('view_cart')))


# checkout wizard, the last step creates the order
@app.route('/checkout', methods=['GET', 'POST'])
def checkout():
    cart = _load_cart()
    if not len(cart):
        flash('Your cart is empty', 'warning')
        return redirect(url_for('view_cart'))

    wizard = CheckoutWizard.from_session(session.get('checkout'))
    methods = catalog.active_payment_methods()

    if request.method == 'POST':
        if request.form.get('action') == 'back':
            wizard.back()
            session['checkout'] = wizard.to_session()
            return redirect(url_for('checkout'))

        allowed = [m.name for m in methods] if methods else None
        try:
            done = wizard.submit_step(request.form, allowed)
        except CheckoutError as e:
            flash(str(e), 'warning')
            return redirect(url_for('checkout'))

        session['checkout'] = wizard.to_session()
        if not done:
            return redirect(url_for('checkout'))

        try:
            order = submit_order(cart, wizard.data)
        except OrderError as e:
            flash(str(e), 'danger')
            return redirect(url_for('checkout'))

        session.pop('cart', None)
        session.pop('checkout', None)
        flash('Order placed! Send it to us on WhatsApp to confirm.', 'success')
        return redirect(url_for('order_placed', order_id=order.id))

    return render_template('store/checkout.html', wizard=wizard, steps=STEPS, cart=cart,
                           payment_methods=methods)


@app.route('/orders/<order_id>/placed')
def order_placed(order_id):
    try:
        order = get_order(order_id)
    except OrderNotFoundError:
        abort(404)
    phone = catalog.get_setting('Telefono', app.config['WHATSAPP_DEFAULT_PHONE'])
    link = whatsapp.whatsapp_url(phone, whatsapp.build_order_message(order, order.items))
    return render_template('store/order_placed.html', order=order, whatsapp_link=link)


# admin sign in and sign out
@app.route('/admin/login', methods=['GET', 'POST'])
def admin_login():
    if current_user.is_authenticated and current_user.is_admin:
        return redirect(url_for('admin_dashboard'))
    if request.method == 'POST':
        try:
            sign_in(request.form.get('email'), request.form.get('password'))
        except AuthError as e:
            flash(str(e), 'danger')
        else:
            return redirect(_safe_next(url_for('admin_dashboard')))
    return render_template('admin/login.html')


@app.route('/admin/logout')
def admin_logout():
    sign_out()
    return redirect(url_for('admin_login'))


@app.route('/admin')
@admin_required
def admin_dashboard():
    pending = sum(1 for o in list_orders() if o.status == STATUS_PENDING)
    summary = sales_report.sales_summary(sales_report.list_sales())
    stock = catalog.availability_summary(catalog.stock_availability())
    return render_template('admin/dashboard.html', pending=pending, summary=summary, stock=stock)


# orders and their status workflow
@app.route('/admin/orders')
@admin_required
def admin_orders():
    return render_template('admin/orders.html', orders=list_orders(), statuses=ORDER_STATUSES)


@app.route('/admin/orders/<order_id>')
@admin_required
def admin_order_detail(order_id):
    try:
        order = get_order(order_id)
    except OrderNotFoundError:
        abort(404)
    return render_template('admin/order_detail.html', order=order, statuses=ORDER_STATUSES)


@app.route('/admin/orders/<order_id>/status', methods=['POST'])
@admin_required
def admin_order_status(order_id):
    try:
        order = change_status(order_id, request.form.get('status'))
    except OrderNotFoundError:
        abort(404)
    except OrderError as e:
        flash(str(e), 'danger')
    else:
        flash(f'Order {order.short_id} is now {order.status}', 'success')
    return redirect(_safe_next(url_for('admin_orders')))


@app.route('/admin/sales')
@admin_required
def admin_sales():
    rows = sales_report.list_sales()
    return render_template('admin/sales.html', sales=rows, summary=sales_report.sales_summary(rows),
                           label=sales_report.payment_method_label)


# products
@app.route('/admin/products', methods=['GET', 'POST'])
@admin_required
def admin_products():
    if request.method == 'POST':
        try:
            product = catalog.save_product(request.form)
        except catalog.CatalogError as e:
            flash(str(e), 'danger')
        else:
            flash(f'{product.name} added to the catalogue', 'success')
        return redirect(url_for('admin_products'))
    return render_template('admin/products.html', products=Product.query.order_by(Product.name).all(),
                           categories=Category.query.order_by(Category.name).all(),
                           sub_categories=SubCategory.query.order_by(SubCategory.name).all())


@app.route('/admin/products/<int:id>/edit', methods=['GET', 'POST'])
@admin_required
def admin_edit_product(id):
    product = db.get_or_404(Product, id)
    if request.method == 'POST':
        try:
            catalog.save_product(request.form, product)
        except catalog.CatalogError as e:
            db.session.rollback()
            flash(str(e), 'danger')
            return redirect(url_for('admin_edit_product', id=id))
        flash(f'Changes saved for {product.name}', 'success')
        return redirect(url_for('admin_products'))
    return render_template('admin/edit_product.html', item=product,
                           categories=Category.query.order_by(Category.name).all(),
                           sub_categories=SubCategory.query.order_by(SubCategory.name).all())


@app.route('/admin/products/<int:id>/delete', methods=['POST'])
@admin_required
def admin_delete_product(id):
    product = db.get_or_404(Product, id)
    name = product.name
    catalog.delete_product(product)
    flash(f'{name} deleted from the catalogue.', 'warning')
    return redirect(url_for('admin_products'))


# categories and subcategories
@app.route('/admin/classification')
@admin_required
def admin_classification():
    return render_template('admin/classification.html',
                           categories=Category.query.order_by(Category.name).all(),
                           sub_categories=SubCategory.query.order_by(SubCategory.name).all())


@app.route('/admin/categories', methods=['POST'])
@admin_required
def admin_save_category():
    try:
        catalog.save_category(request.form.get('name'), request.form.get('description'),
                              request.form.get('id', type=int))
    except catalog.CatalogError as e:
        flash(str(e), 'danger')
    else:
        flash('Category saved', 'success')
    return redirect(url_for('admin_classification'))


@app.route('/admin/categories/<int:id>/delete', methods=['POST'])
@admin_required
def admin_delete_category(id):
    catalog.delete_category(id)
    flash('Category deleted', 'warning')
    return redirect(url_for('admin_classification'))


@app.route('/admin/subcategories', methods=['POST'])
@admin_required
def admin_save_subcategory():
    try:
        catalog.save_subcategory(request.form.get('name'), request.form.get('category_name'),
                                 request.form.get('description'), request.form.get('id', type=int))
    except catalog.CatalogError as e:
        flash(str(e), 'danger')
    else:
        flash('Subcategory saved', 'success')
    return redirect(url_for('admin_classification'))


@app.route('/admin/subcategories/<int:id>/delete', methods=['POST'])
@admin_required
def admin_delete_subcategory(id):
    catalog.delete_subcategory(id)
    flash('Subcategory deleted', 'warning')
    return redirect(url_for('admin_classification'))


# stock ledger: list movements and record a new one
@app.route('/admin/stock', methods=['GET', 'POST'])
@admin_required
def admin_stock():
    if request.method == 'POST':
        try:
            movement = ledger.record_movement(
                request.form.get('product_name'),
                request.form.get('movement_type'),
                request.form.get('quantity'),
                note=request.form.get('note'),
            )
        except ledger.LedgerError as e:
            flash(str(e), 'danger')
        else:
            flash(f'Movement recorded, {movement.product_name} now has {movement.new_balance}', 'success')
        return redirect(url_for('admin_stock'))
    return render_template('admin/stock.html', movements=ledger.list_movements(),
                           products=Product.query.order_by(Product.name).all(),
                           movement_types=(MOVEMENT_IN, MOVEMENT_OUT))


@app.route('/admin/availability')
@admin_required
def admin_availability():
    search = request.args.get('q', '')
    category = request.args.get('category', '')
    rows = catalog.stock_availability(search, category)
    categories = sorted({p.category_name for p in Product.query.all() if p.category_name})
    return render_template('admin/availability.html', rows=rows, summary=catalog.availability_summary(rows),
                           categories=categories, search=search, category=category)


if __name__ == '__main__':
    app.run(debug=True, port=5001)
