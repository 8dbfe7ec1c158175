# unithrift/__init__.py
import logging
import os

from dotenv import load_dotenv
from flask import Flask

from .models import db
from .ratelimit import MemoryBucketStore, RateLimiter

load_dotenv()

# label -> (window seconds, max requests per client)
RATE_LIMITS = {
    'checkout': (60, 10),
    'admin': (60, 60),
}


def env_flag(name, default='0'):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite:///unithrift.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET'] = os.getenv('JWT_SECRET', 'dev-secret-key')
    app.config['SECRET_KEY'] = app.config['JWT_SECRET']
    app.config['ADMIN_KEY'] = os.getenv('ADMIN_KEY', 'dev-admin-key')
    app.config['REQUIRE_ADMIN_KEY'] = env_flag('REQUIRE_ADMIN_KEY')
    app.config['ORDERS_SNAPSHOT'] = os.getenv('ORDERS_SNAPSHOT', 'orders.json')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')
    app.config['RATE_LIMIT_STORE'] = None
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))
    db.init_app(app)

    store = app.config['RATE_LIMIT_STORE'] or MemoryBucketStore()
    app.extensions['rate_limiters'] = {
        label: RateLimiter(label, window, max_requests, store=store)
        for label, (window, max_requests) in RATE_LIMITS.items()
    }

    from .api import bp
    from .errors import register_error_handlers
    app.register_blueprint(bp)
    register_error_handlers(app)

    with app.app_context():
        db.create_all()

    return app
