"""Murasaki API.

Proof-of-concept backend that delegates authentication to a Keycloak realm,
mirrors verified identities into local user records and gates a small posts
resource behind bearer tokens.
"""

__version__ = "0.1.0"
