"""Caller identity extraction."""

from fastapi import Header, HTTPException

CALLER_HEADER = "X-Caller-Id"


async def get_caller(
    x_caller_id: str | None = Header(default=None, alias=CALLER_HEADER),
) -> str:
    """Identity of the caller, as asserted by the fronting gateway."""
    if not x_caller_id:
        raise HTTPException(
            status_code=401,
            detail=f"Missing {CALLER_HEADER} header",
        )
    return x_caller_id
