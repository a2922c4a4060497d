"""
Flask extensions created once and bound to each app in create_app().
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Keyed by client address; storage and on/off come from RATELIMIT_* config
limiter = Limiter(key_func=get_remote_address)
