"""
Pydantic models for gateway responses.

Upstream JSON is relayed untouched, so only the gateway's own bodies
are modelled here.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error body returned for any failed token exchange or proxy call."""
    error: str
