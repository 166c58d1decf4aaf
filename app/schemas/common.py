"""
Common schemas for API responses.
"""
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response schema."""

    detail: str


class OkResponse(BaseModel):
    """Acknowledgement of a state change."""

    ok: bool = True
