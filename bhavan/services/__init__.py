"""
                        Services Module

Business logic behind the API. Provider-backed services follow the hybrid
pattern: a Mock (development) and a Real (production) implementation
behind a cached factory.

Services:
    - auth: identity-provider token verification
    - geo: Google Maps location capture
    - notifications: Twilio SMS / SendGrid email staff alerts
    - printing: ESC/POS thermal receipt printing
    - catalog, orders, admins, profiles: database-backed domain logic
    - checkout, order_status, receipts, realtime: shared rules and renderers
"""
