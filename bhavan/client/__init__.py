"""
Customer Client

Local cart, session state and an HTTP client for the ordering API, plus the
``bhavan-cli`` command line.
"""

from bhavan.client.cart import Cart, CartLine
from bhavan.client.session import SessionState
from bhavan.client.storage import LocalStorage

__all__ = ["Cart", "CartLine", "SessionState", "LocalStorage"]
