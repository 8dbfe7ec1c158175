# unithrift/coupons.py
from collections import namedtuple

from .utils import round_half_up

CouponResult = namedtuple('CouponResult', ['final_total', 'discount', 'code'])

# Hard-coded campus coupons
COUPONS = {
    'UNISTUDENT10': {
        'type': 'percent',
        'value': 10,
        'min_total': 0,
        'label': '10% off for students',
    },
    'FREESHIP20': {
        'type': 'flat',
        'value': 20,
        'min_total': 150,
        'label': '₱20 off orders ₱150+',
    },
}


def normalize_code(raw_code):
    return str(raw_code or '').strip().upper()


def apply_coupon(subtotal, raw_code):
    code = normalize_code(raw_code)
    info = COUPONS.get(code)
    if not info or subtotal <= 0 or subtotal < info.get('min_total', 0):
        return CouponResult(round_half_up(subtotal), 0, None)

    if info['type'] == 'percent':
        discount = subtotal * info['value'] / 100
    elif info['type'] == 'flat':
        discount = info['value']
    else:
        discount = 0

    discount = max(0, round_half_up(discount))
    final_total = max(0, round_half_up(subtotal - discount))
    return CouponResult(final_total, discount, code)
