# unithrift/checkout.py
"""
Checkout: turn a client cart into a persisted order.

Three body shapes are accepted on the wire:

    [ {...}, ... ]               shape 'list'
    {"items": [ {...}, ... ]}    shape 'items'
    {"cart": [ {...}, ... ]}     shape 'cart'

A bare list carries no order fields, so for that shape campus, pickup,
couponCode and phone are read from the query string instead.

Client prices are only trusted for products the store doesn't know about.
"""
from collections import namedtuple
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .coupons import apply_coupon
from .errors import ServerError, UnprocessableError, ValidationError
from .models import Order, OrderItem, Product, db
from .utils import MAX_AMOUNT, round_half_up, sanitize_string, to_number

CartPayload = namedtuple('CartPayload', ['shape', 'entries', 'fields'])

DEFAULT_CAMPUS = 'ADMU'
DEFAULT_PICKUP = 'Gate 2.5'
PICKUP_ESTIMATE = {'etaMins': 15, 'fee': 0}


@dataclass
class CartLine:
    product_id: str
    name: str
    qty: int = 1
    price_snap: int = 0


def parse_payload(body, query=None):
    query = query or {}
    if isinstance(body, list):
        return CartPayload('list', body, dict(query))
    if isinstance(body, dict):
        for shape in ('items', 'cart'):
            if isinstance(body.get(shape), list):
                return CartPayload(shape, body[shape], body)
        return CartPayload('empty', [], body)
    return CartPayload('empty', [], {})


def normalize_line(entry):
    product_id = entry.get('productId') or entry.get('id') or 'CLIENT-ID'
    qty = to_number(entry.get('qty'))
    price = to_number(entry.get('price'))
    return CartLine(
        product_id=str(product_id)[:64],
        name=str(entry.get('name') or 'Item'),
        qty=int(qty) if qty is not None and int(qty) > 0 else 1,
        price_snap=max(0, round_half_up(price)) if price is not None else 0,
    )


def normalize_items(entries):
    return [normalize_line(e) for e in entries if isinstance(e, dict)]


def price_lookup(lines):
    ids = list({line.product_id for line in lines})
    found = Product.query.filter(Product.id.in_(ids)).all()
    return {p.id: p.price for p in found}


def unit_price(line, prices):
    return prices.get(line.product_id, line.price_snap)


def place_order(user, body, query=None):
    """Validate, price and persist one checkout. Returns the response body."""
    payload = parse_payload(body, query)
    fields = payload.fields
    lines = normalize_items(payload.entries)
    if not lines:
        raise UnprocessableError(
            'No items received',
            hint='Check Content-Type: application/json and request body shape',
            received=body,
        )

    if any(line.qty > MAX_AMOUNT or line.price_snap > MAX_AMOUNT for line in lines):
        raise ValidationError('Quantity or price out of range', max=MAX_AMOUNT)

    buyer_phone = sanitize_string(fields.get('phone'), 32)
    if not buyer_phone:
        raise ValidationError('Phone number is required')
    campus = sanitize_string(fields.get('campus') or DEFAULT_CAMPUS, 40)
    pickup = sanitize_string(fields.get('pickup') or DEFAULT_PICKUP, 80)
    coupon_raw = sanitize_string(fields.get('couponCode'), 32)

    try:
        prices = price_lookup(lines)
        subtotal = sum(unit_price(line, prices) * line.qty for line in lines)
        coupon = apply_coupon(subtotal, coupon_raw)

        order = Order(
            campus=campus,
            pickup=pickup,
            total=coupon.final_total,
            coupon_code=coupon.code,
            discount=coupon.discount,
            buyer_phone=buyer_phone,
            buyer_id=user['id'],
            items=[OrderItem(product_id=line.product_id, qty=line.qty,
                             price=unit_price(line, prices)) for line in lines],
        )
        db.session.add(order)
        db.session.commit()
    except (SQLAlchemyError, OverflowError) as e:
        # OverflowError: a total too large for the database integer column
        db.session.rollback()
        current_app.logger.exception('Checkout server error')
        raise ServerError('Checkout failed', message=str(e))

    current_app.logger.info('Order %s placed by %s: total=%s discount=%s',
                            order.id, user['id'], order.total, order.discount)
    return {
        'orderId': order.id,
        'total': order.total,
        'discount': order.discount or 0,
        'couponCode': order.coupon_code,
        'pickup': dict(PICKUP_ESTIMATE),
    }
