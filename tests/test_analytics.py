import json
from datetime import datetime, timedelta

import pytest

from unithrift.analytics import EPOCH, parse_limit, resolve_range, summarize_orders
from unithrift.models import Order, OrderItem, db, utcnow

SEED = [
    # campus, total, coupon, discount, created_at
    ('ADMU', 900, 'UNISTUDENT10', 100, datetime(2024, 3, 1, 9, 0)),
    ('ADMU', 300, None, 0, datetime(2024, 3, 1, 18, 30)),
    ('UPD', 180, 'FREESHIP20', 20, datetime(2024, 3, 2, 12, 0)),
    ('', 45, None, None, datetime(2024, 3, 4, 8, 15)),
    ('UPD', 270, 'UNISTUDENT10', 30, datetime(2024, 3, 4, 23, 59)),
]


def make_order(campus, total, coupon, discount, created_at):
    return Order(campus=campus, pickup='Gate 2.5', total=total, coupon_code=coupon,
                 discount=discount, created_at=created_at,
                 items=[OrderItem(product_id='p', qty=1, price=total)])


@pytest.fixture
def seeded(app):
    with app.app_context():
        db.session.add_all([make_order(*row) for row in SEED])
        db.session.commit()


def test_resolve_range():
    now = datetime(2024, 5, 10, 12, 0)
    assert resolve_range('7d', now) == datetime(2024, 5, 3, 12, 0)
    assert resolve_range('30d', now) == datetime(2024, 4, 10, 12, 0)
    assert resolve_range('all', now) == EPOCH
    assert resolve_range('bogus', now) == EPOCH


def test_summarize_no_orders():
    assert summarize_orders([]) == {
        'totals': {'sales': 0, 'orders': 0, 'avgOrder': 0, 'discount': 0},
        'byCampus': [],
        'byCoupon': [],
        'daily': [],
    }


def test_summary_all_reconciles_with_seed(client, seeded):
    res = client.get('/api/admin/summary?range=all')
    assert res.status_code == 200
    s = res.get_json()

    assert s['range'] == 'all'
    assert s['from'] == '1970-01-01T00:00:00.000Z'
    assert s['totals'] == {'sales': 1695, 'orders': 5, 'avgOrder': 339, 'discount': 150}
    assert s['byCampus'] == [
        {'campus': 'ADMU', 'sales': 1200, 'orders': 2},
        {'campus': 'UPD', 'sales': 450, 'orders': 2},
        {'campus': 'Unknown', 'sales': 45, 'orders': 1},
    ]
    assert s['byCoupon'] == [
        {'code': 'UNISTUDENT10', 'uses': 2, 'totalDiscount': 130},
        {'code': 'FREESHIP20', 'uses': 1, 'totalDiscount': 20},
    ]
    assert s['daily'] == [
        {'date': '2024-03-01', 'sales': 1200, 'orders': 2},
        {'date': '2024-03-02', 'sales': 180, 'orders': 1},
        {'date': '2024-03-04', 'sales': 315, 'orders': 2},
    ]
    assert sum(d['sales'] for d in s['daily']) == s['totals']['sales']
    assert sum(c['orders'] for c in s['byCampus']) == s['totals']['orders']


def test_summary_defaults_to_seven_days(app, client, seeded):
    with app.app_context():
        db.session.add(make_order('UPD', 500, None, 0, utcnow() - timedelta(days=2)))
        db.session.add(make_order('UPD', 700, None, 0, utcnow() - timedelta(days=20)))
        db.session.commit()

    s = client.get('/api/admin/summary').get_json()
    assert s['range'] == '7d'
    assert s['totals']['sales'] == 500

    s = client.get('/api/admin/summary?range=30d').get_json()
    assert s['totals']['sales'] == 1200


def test_avg_order_rounds_half_up():
    orders = [make_order('A', 1, None, 0, datetime(2024, 1, 1)),
              make_order('A', 2, None, 0, datetime(2024, 1, 1))]
    assert summarize_orders(orders)['totals']['avgOrder'] == 2


def test_recent_orders(client, seeded):
    res = client.get('/api/admin/orders?limit=2')
    orders = res.get_json()['orders']
    assert [o['total'] for o in orders] == [270, 45]
    assert orders[0]['items'][0]['price'] == 270
    assert orders[0]['createdAt'] == '2024-03-04T23:59:00.000Z'

    assert len(client.get('/api/admin/orders').get_json()['orders']) == 5


@pytest.mark.parametrize('raw, expected', [(None, 50), ('10', 10), ('abc', 50), ('0', 50), ('-3', 50)])
def test_parse_limit(raw, expected):
    assert parse_limit(raw) == expected


def test_admin_key_toggle(app, client):
    assert client.get('/api/admin/summary').status_code == 200

    app.config['REQUIRE_ADMIN_KEY'] = True
    res = client.get('/api/admin/summary')
    assert res.status_code == 401
    assert res.get_json() == {'error': 'Unauthorized: invalid admin key'}
    assert client.get('/api/admin/orders?key=dev-admin-key').status_code == 200
    assert client.get('/api/admin/orders', headers={'X-Admin-Key': 'dev-admin-key'}).status_code == 200


def test_admin_rate_limit(client):
    for _ in range(60):
        assert client.get('/api/admin/orders').status_code == 200
    assert client.get('/api/admin/orders').status_code == 429


def test_snapshot_missing_file(client):
    assert client.get('/api/orders').get_json() == []


def test_snapshot_file(app, client):
    with open(app.config['ORDERS_SNAPSHOT'], 'w', encoding='utf-8') as f:
        json.dump([{'id': 'legacy-1', 'total': 99}], f)
    assert client.get('/api/orders').get_json() == [{'id': 'legacy-1', 'total': 99}]


def test_snapshot_unreadable(app, client):
    with open(app.config['ORDERS_SNAPSHOT'], 'w', encoding='utf-8') as f:
        f.write('{not json')
    res = client.get('/api/orders')
    assert res.status_code == 500
    assert res.get_json() == {'error': 'Failed to read orders.'}
