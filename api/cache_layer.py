"""Cache layer API route."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_current_user, get_services
from services.cache_layer import UnsupportedCacheDomain

router = APIRouter(tags=["Cache"])


@router.get("/cache-layer", summary="Read or invalidate cached user data")
def cache_layer(
    query_type: Optional[str] = Query(None, alias="type"),
    params: Optional[str] = Query(None),
    invalidate: bool = Query(False),
    user_id: str = Depends(get_current_user),
    services=Depends(get_services),
):
    """
    Serve cached data for ``type`` or drop it.

    - `?type=categories` reads the user's categories through the cache
    - `?type=categories&invalidate=true&params=all` drops every cached
      categories entry of the user
    """
    if not query_type:
        raise HTTPException(status_code=400, detail="Query type required")

    try:
        if invalidate:
            return services.cache_layer.invalidate(query_type, user_id, params)

        rate = services.rate_limiter.check(user_id)
        if not rate.allowed:
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "Too many requests",
                    "reset_time": rate.reset_time,
                    "remaining": rate.remaining,
                },
            )

        return services.cache_layer.read(query_type, user_id, params)
    except UnsupportedCacheDomain as e:
        raise HTTPException(status_code=400, detail=str(e))
