# unithrift/ratelimit.py
"""
Per-client fixed-window request counting.

The limiter only decides; the window state lives in a store object so the
process-local ``MemoryBucketStore`` can be swapped for a shared one when
running more than one worker process.
"""
import threading
import time
from functools import wraps

from flask import current_app, request

from .errors import RateLimitError


class MemoryBucketStore:
    """Process-local bucket map, reset on restart."""

    def __init__(self):
        self._buckets = {}
        self._lock = threading.Lock()

    def hit(self, key, window, now):
        """Count one request against ``key`` and return the window's count."""
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                self._buckets[key] = {'count': 1, 'start': now}
                return 1
            if now - bucket['start'] > window:
                bucket['count'] = 1
                bucket['start'] = now
                return 1
            bucket['count'] += 1
            return bucket['count']


class RateLimiter:

    def __init__(self, label, window, max_requests, store=None, clock=time.monotonic):
        self.label = label
        self.window = window
        self.max_requests = max_requests
        self.store = store if store is not None else MemoryBucketStore()
        self.clock = clock

    def check(self, client):
        count = self.store.hit(f'{self.label}:{client}', self.window, self.clock())
        if count > self.max_requests:
            raise RateLimitError('Too many requests', hint=f'Slow down on {self.label} calls')
        return count


def client_ip():
    forwarded = request.headers.get('X-Forwarded-For', '')
    return request.remote_addr or forwarded.split(',')[0].strip() or 'anon'


def rate_limited(label):
    """Gate a view with the app's limiter registered under ``label``."""
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            limiter = current_app.extensions['rate_limiters'][label]
            limiter.check(client_ip())
            return f(*args, **kwargs)
        return wrapped
    return decorator
