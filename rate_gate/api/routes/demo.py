from __future__ import annotations

from fastapi import APIRouter, Depends

from rate_gate.core.rate_limit import enforce_rate_limit

router = APIRouter(
    tags=["Demo"],
    dependencies=[Depends(enforce_rate_limit)],
    responses={429: {"description": "Rate limit exceeded for this user and path"}},
)


@router.get("/api/test")
def rate_limited_test() -> dict:
    """Rate-limited endpoint for exercising the limiter end to end."""

    return {"message": "Request successful - you are not rate limited!"}
