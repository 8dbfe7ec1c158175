# unithrift/api.py
import json
import os

from flask import Blueprint, current_app, jsonify, request

from . import analytics, auth, checkout
from .auth import admin_required, current_user, login_required
from .errors import ForbiddenError, ValidationError
from .models import Order, OrderItem, Product, db
from .ratelimit import rate_limited
from .utils import MAX_AMOUNT, round_half_up, sanitize_string, to_number

bp = Blueprint('api', __name__, url_prefix='/api')


def json_body():
    return request.get_json(silent=True)


def json_object():
    body = json_body()
    return body if isinstance(body, dict) else {}


# --- auth ---

@bp.post('/auth/signup')
def signup():
    data = json_object()
    return jsonify(auth.signup(data.get('email'), data.get('password'), data.get('name')))


@bp.post('/auth/login')
def login():
    data = json_object()
    return jsonify(auth.login(data.get('email'), data.get('password')))


@bp.get('/me')
@login_required
def me():
    return jsonify({'user': current_user()})


# --- products ---

@bp.get('/products')
def list_products():
    products = Product.query.order_by(Product.created_at.desc()).all()
    return jsonify([p.to_dict() for p in products])


@bp.post('/my/products')
@login_required
def add_product():
    data = json_object()
    name = sanitize_string(data.get('name'), 80)
    price = to_number(data.get('price'))
    if not name or not price or price < 0:
        raise ValidationError('name and price are required')
    if price > MAX_AMOUNT:
        raise ValidationError('price out of range', max=MAX_AMOUNT)

    p = Product(
        name=name,
        price=round_half_up(price),
        image_url=sanitize_string(data.get('imageUrl'), 200) or None,
        campus=sanitize_string(data.get('campus'), 40) or 'ADMU',
        category=sanitize_string(data.get('category'), 40) or 'General',
        seller_id=current_user()['id'],
    )
    db.session.add(p); db.session.commit()
    return jsonify({'product': p.to_dict()})


@bp.get('/my/products')
@login_required
def my_products():
    products = (Product.query.filter_by(seller_id=current_user()['id'])
                .order_by(Product.created_at.desc()).all())
    return jsonify({'products': [p.to_dict() for p in products]})


@bp.delete('/my/products/<pid>')
@login_required
def delete_product(pid):
    p = db.session.get(Product, pid)
    if p is None or p.seller_id != current_user()['id']:
        raise ForbiddenError('Not allowed')
    db.session.delete(p); db.session.commit()
    return jsonify({'ok': True})


# --- orders ---

@bp.get('/my/orders')
@login_required
def my_orders():
    orders = (Order.query.filter_by(buyer_id=current_user()['id'])
              .order_by(Order.created_at.desc()).all())
    return jsonify({'orders': [o.to_dict() for o in orders]})


@bp.get('/my/sales')
@login_required
def my_sales():
    ids = [pid for (pid,) in db.session.query(Product.id)
           .filter(Product.seller_id == current_user()['id']).all()]
    if not ids:
        return jsonify({'orders': []})
    orders = (Order.query.filter(Order.items.any(OrderItem.product_id.in_(ids)))
              .order_by(Order.created_at.desc()).all())
    return jsonify({'orders': [o.to_dict() for o in orders]})


@bp.get('/cart/checkout')
def checkout_get():
    return jsonify({'error': 'Use POST /api/cart/checkout to place an order (with JSON body).'}), 405


@bp.post('/cart/checkout')
@rate_limited('checkout')
@login_required
def checkout_post():
    body = json_body()
    current_app.logger.debug('POST /api/cart/checkout body: %r', body)
    return jsonify(checkout.place_order(current_user(), body, request.args.to_dict()))


# --- admin ---

@bp.get('/admin/summary')
@rate_limited('admin')
@admin_required
def admin_summary():
    return jsonify(analytics.sales_summary(request.args.get('range', '7d')))


@bp.get('/admin/orders')
@rate_limited('admin')
@admin_required
def admin_orders():
    return jsonify({'orders': analytics.recent_orders(request.args.get('limit'))})


@bp.get('/orders')
def snapshot_orders():
    path = current_app.config['ORDERS_SNAPSHOT']
    if not os.path.exists(path):
        return jsonify([])
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        current_app.logger.exception('Error reading orders snapshot %s', path)
        return jsonify({'error': 'Failed to read orders.'}), 500
    return jsonify(data)
