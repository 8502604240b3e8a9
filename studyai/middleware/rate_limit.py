"""
Rate limiting using slowapi
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"]
)


def enrichment_limit():
    """Rate limit for endpoints calling the remote model"""
    return limiter.limit("10/minute")


def analysis_limit():
    """Rate limit for local analysis endpoints"""
    return limiter.limit("60/minute")
