"""
                Bengaluru Bhavan Ordering Service

Backend for the restaurant ordering website: menu browsing, checkout,
order tracking, admin back-office and the new-order receipt pipeline.
Hybrid Mock/Real provider architecture selected by ENV_MODE.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
