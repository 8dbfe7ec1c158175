# unithrift/auth.py
"""
Email/password accounts and signed bearer tokens.

Passwords are stored as salted werkzeug hashes. Tokens are itsdangerous
timed signatures over the user's public identity, valid for seven days.
"""
from functools import wraps

from flask import current_app, g, request
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthError, ConflictError, ValidationError
from .models import User, db
from .utils import sanitize_string

TOKEN_MAX_AGE = 7 * 24 * 60 * 60
TOKEN_SALT = 'unithrift-auth'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['JWT_SECRET'], salt=TOKEN_SALT)


def sign_token(user):
    return _serializer().dumps({'id': user.id, 'email': user.email, 'name': user.name})


def load_token(token):
    """Return the token payload or raise AuthError."""
    try:
        payload = _serializer().loads(token, max_age=TOKEN_MAX_AGE)
    except SignatureExpired:
        raise AuthError('Invalid or expired token')
    except BadData as e:
        current_app.logger.info('Auth error: %s', e)
        raise AuthError('Invalid or expired token')
    if not isinstance(payload, dict) or 'id' not in payload:
        raise AuthError('Invalid or expired token')
    return payload


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[7:].strip() or None
    return None


def _session_for(user):
    return {'token': sign_token(user), 'user': user.public()}


def signup(email, password, name):
    clean_email = sanitize_string(email, 120).lower()
    clean_name = sanitize_string(name, 80)
    if not clean_email or not password or not clean_name:
        raise ValidationError('name, email, and password are required')

    if User.query.filter_by(email=clean_email).first():
        raise ConflictError('Email already registered')

    user = User(email=clean_email, name=clean_name,
                password_hash=generate_password_hash(str(password)))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        db.session.rollback()
        raise ConflictError('Email already registered')
    current_app.logger.info('New user %s', user.id)
    return _session_for(user)


def login(email, password):
    clean_email = sanitize_string(email, 120).lower()
    if not clean_email or not password:
        raise ValidationError('email and password are required')

    user = User.query.filter_by(email=clean_email).first()
    if not user or not check_password_hash(user.password_hash, str(password)):
        raise AuthError('Invalid credentials')
    return _session_for(user)


def login_required(f):
    @wraps(f)
    def wrapped(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise AuthError('Missing auth token')
        payload = load_token(token)
        user = db.session.get(User, payload['id'])
        if user is None:
            raise AuthError('User not found')
        g.user = user.public()
        return f(*args, **kwargs)
    return wrapped


def current_user():
    return g.user


def admin_required(f):
    """Check the admin key, only when REQUIRE_ADMIN_KEY is switched on."""
    @wraps(f)
    def wrapped(*args, **kwargs):
        cfg = current_app.config
        admin_key = cfg.get('ADMIN_KEY')
        if cfg.get('REQUIRE_ADMIN_KEY') and admin_key:
            key = request.args.get('key') or request.headers.get('X-Admin-Key')
            if key != admin_key:
                raise AuthError('Unauthorized: invalid admin key')
        return f(*args, **kwargs)
    return wrapped
