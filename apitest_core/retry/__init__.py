"""
Retry Logic with Fixed Delay
============================
Retries every failed attempt of a logical request after a constant wait.
"""

from .policy import RetryPolicy, fixed_delay_retrying

__all__ = [
    "RetryPolicy",
    "fixed_delay_retrying",
]
