# unithrift/analytics.py
from datetime import datetime, timedelta

from .models import Order, isoformat, utcnow
from .utils import round_half_up

RANGES = {'7d': timedelta(days=7), '30d': timedelta(days=30)}
EPOCH = datetime(1970, 1, 1)
DEFAULT_ORDER_LIMIT = 50


def resolve_range(range_key, now):
    # anything that isn't a known window means all time
    span = RANGES.get(range_key)
    return now - span if span else EPOCH


def summarize_orders(orders):
    """Fold orders (oldest first) into totals and per-campus/coupon/day groups."""
    total_sales = 0
    total_discount = 0
    by_campus = {}
    by_coupon = {}
    daily = {}

    for o in orders:
        total = o.total or 0
        discount = o.discount or 0
        total_sales += total
        total_discount += discount

        campus = o.campus or 'Unknown'
        row = by_campus.setdefault(campus, {'campus': campus, 'sales': 0, 'orders': 0})
        row['sales'] += total
        row['orders'] += 1

        if o.coupon_code:
            row = by_coupon.setdefault(o.coupon_code, {'code': o.coupon_code, 'uses': 0, 'totalDiscount': 0})
            row['uses'] += 1
            row['totalDiscount'] += discount

        day = o.created_at.date().isoformat()
        row = daily.setdefault(day, {'date': day, 'sales': 0, 'orders': 0})
        row['sales'] += total
        row['orders'] += 1

    count = len(orders)
    return {
        'totals': {
            'sales': total_sales,
            'orders': count,
            'avgOrder': round_half_up(total_sales / count) if count else 0,
            'discount': total_discount,
        },
        'byCampus': list(by_campus.values()),
        'byCoupon': list(by_coupon.values()),
        'daily': sorted(daily.values(), key=lambda d: d['date']),
    }


def sales_summary(range_key='7d', now=None):
    range_key = range_key or '7d'
    now = now or utcnow()
    start = resolve_range(range_key, now)
    orders = (Order.query
              .filter(Order.created_at >= start, Order.created_at <= now)
              .order_by(Order.created_at.asc())
              .all())
    summary = {'range': range_key, 'from': isoformat(start), 'to': isoformat(now)}
    summary.update(summarize_orders(orders))
    return summary


def parse_limit(raw):
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_ORDER_LIMIT
    return limit if limit > 0 else DEFAULT_ORDER_LIMIT


def recent_orders(limit=DEFAULT_ORDER_LIMIT):
    orders = Order.query.order_by(Order.created_at.desc()).limit(parse_limit(limit)).all()
    return [o.to_dict() for o in orders]
