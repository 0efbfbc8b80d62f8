"""
Client for the upstream Tink API.

Handles the authorization-code exchange and forwards authenticated
calls on behalf of the browser client.
https://docs.tink.com/api
"""

import logging
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import Settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/api/v1/oauth/token"


def _reject_constant(name: str):
    raise UpstreamError(f"Invalid JSON from upstream: non-finite value {name}")


def parse_response(resp: requests.Response) -> Any:
    """
    Decode a JSON response from the upstream API.

    NaN and Infinity are rejected since they cannot be relayed as JSON.

    Raises:
        UpstreamError: on a non-2xx status, an undecodable body or a
            non-finite number
    """
    if not resp.ok:
        raise UpstreamError(
            f'Request failed with "{resp.status_code}"',
            status_code=resp.status_code,
        )
    try:
        return resp.json(parse_constant=_reject_constant)
    except ValueError as e:
        raise UpstreamError(f"Invalid JSON from upstream: {e}", status_code=resp.status_code)


class UpstreamClient:
    """
    Tink API client shared by all requests.

    Usage:
        client = UpstreamClient(settings)
        token = client.fetch_access_token(code)
        accounts = client.forward("GET", "/data/v2/accounts", authorization="Bearer ...")
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.api_url = settings.api_url.rstrip("/")
        self.session = session or requests.Session()
        # Upstream cookies must not carry over from one caller to the next
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def _request(self, method: str, url: str, **kwargs) -> Any:
        logger.debug(f"Upstream {method} {url}")
        try:
            resp = self.session.request(
                method, url, timeout=self.settings.upstream_timeout, **kwargs
            )
        except requests.RequestException as e:
            raise UpstreamError(str(e))
        return parse_response(resp)

    def fetch_access_token(self, code: str) -> Dict:
        """
        Exchange an authorization code for an access token.

        Args:
            code: One-time authorization code from the Tink Link redirect

        Returns:
            Token response JSON exactly as returned by Tink
        """
        data = {
            "code": code,
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "grant_type": "authorization_code",
        }
        return self._request("POST", f"{self.api_url}{TOKEN_PATH}", data=data)

    def forward(
        self,
        method: str,
        path: str,
        authorization: Optional[str] = None,
        params: Optional[List[Tuple[str, str]]] = None,
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> Any:
        """
        Forward a call to the upstream API.

        Args:
            method: HTTP method of the inbound request
            path: Upstream path (already stripped of the proxy prefix)
            authorization: Caller's Authorization header, passed unmodified
            params: Query parameters to carry through, repeated keys allowed
            body: Raw request body, sent only when non-empty
            content_type: Content-Type accompanying the body

        Returns:
            Decoded upstream JSON body
        """
        headers = {}
        if authorization is not None:
            headers["Authorization"] = authorization

        kwargs: Dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = params
        if body:
            kwargs["data"] = body
            if content_type:
                headers["Content-Type"] = content_type

        return self._request(method, f"{self.api_url}{path}", **kwargs)

    def close(self) -> None:
        self.session.close()
