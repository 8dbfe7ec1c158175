# unithrift/models.py
import uuid
from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_id():
    return uuid.uuid4().hex


def utcnow():
    # naive UTC, SQLite drops tzinfo anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(dt):
    if dt is None:
        return None
    return dt.isoformat(timespec='milliseconds') + 'Z'


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(80), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    products = db.relationship('Product', backref='seller', lazy=True)
    orders = db.relationship('Order', backref='buyer', lazy=True)

    def public(self):
        return {'id': self.id, 'email': self.email, 'name': self.name}


class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(80), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    campus = db.Column(db.String(40), nullable=False)
    category = db.Column(db.String(40), nullable=False)
    image_url = db.Column(db.String(200), nullable=True)
    seller_id = db.Column(db.String(32), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'campus': self.campus,
            'category': self.category,
            'imageUrl': self.image_url,
            'sellerId': self.seller_id,
            'createdAt': isoformat(self.created_at),
        }


class Order(db.Model):
    __tablename__ = 'orders'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    campus = db.Column(db.String(40), nullable=False)
    pickup = db.Column(db.String(80), nullable=False)
    total = db.Column(db.Integer, nullable=False)
    coupon_code = db.Column(db.String(32), nullable=True)
    discount = db.Column(db.Integer, nullable=True)
    buyer_phone = db.Column(db.String(32), nullable=True)
    buyer_id = db.Column(db.String(32), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    items = db.relationship('OrderItem', backref='order', lazy=True, cascade='all, delete-orphan')

    def to_dict(self, with_items=True):
        data = {
            'id': self.id,
            'campus': self.campus,
            'pickup': self.pickup,
            'total': self.total,
            'couponCode': self.coupon_code,
            'discount': self.discount,
            'buyerPhone': self.buyer_phone,
            'buyerId': self.buyer_id,
            'createdAt': isoformat(self.created_at),
        }
        if with_items:
            data['items'] = [it.to_dict() for it in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = 'order_items'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    order_id = db.Column(db.String(32), db.ForeignKey('orders.id'), nullable=False)
    # not a foreign key: carts may reference products the store never had
    product_id = db.Column(db.String(64), nullable=False, index=True)
    qty = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'productId': self.product_id,
            'qty': self.qty,
            'price': self.price,
        }
