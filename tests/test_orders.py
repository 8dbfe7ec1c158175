from unithrift.models import Product, db

from conftest import bearer, signup


def place(client, token, items, phone='0917'):
    res = client.post('/api/cart/checkout', headers=bearer(token), json={'items': items, 'phone': phone})
    assert res.status_code == 200
    return res.get_json()['orderId']


def test_my_orders(client, token, seller):
    other = signup(client, email='cy@school.edu', name='Cy')['token']
    mine = place(client, token, [{'productId': seller['product']['id']}])
    place(client, other, [{'id': 'x', 'price': 5}])

    orders = client.get('/api/my/orders', headers=bearer(token)).get_json()['orders']
    assert [o['id'] for o in orders] == [mine]
    assert orders[0]['items'][0]['productId'] == seller['product']['id']


def test_my_sales(client, token, seller):
    sold = place(client, token, [{'productId': seller['product']['id']}, {'id': 'x', 'price': 5}])
    place(client, token, [{'id': 'y', 'price': 5}])

    orders = client.get('/api/my/sales', headers=bearer(seller['token'])).get_json()['orders']
    assert [o['id'] for o in orders] == [sold]


def test_my_sales_without_products(client, token):
    res = client.get('/api/my/sales', headers=bearer(token))
    assert res.get_json() == {'orders': []}


def test_order_keeps_price_snapshot(app, client, token, seller):
    place(client, token, [{'productId': seller['product']['id']}])
    with app.app_context():
        product = db.session.get(Product, seller['product']['id'])
        product.price = 999
        db.session.commit()

    order = client.get('/api/my/orders', headers=bearer(token)).get_json()['orders'][0]
    assert order['total'] == 120
    assert order['items'][0]['price'] == 120


def test_unknown_route_is_json(client):
    res = client.get('/api/nope')
    assert res.status_code == 404
    assert 'error' in res.get_json()
