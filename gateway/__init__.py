"""
Local HTTP gateway for the Tink API.

Exchanges OAuth authorization codes for access tokens, proxies
authenticated calls from the browser client and serves the static
front-end.
"""

__version__ = "1.0.0"
