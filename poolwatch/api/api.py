import time
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from poolwatch.services import Services

log = logging.getLogger(__name__)

router = APIRouter()


async def get_services(request: Request) -> Services:
    return request.app.state.services


@router.get("/")
async def read_root(services: Services = Depends(get_services)):
    last = services.refresher.last_summary
    return {
        "message": "PancakeSwap V3 pool cache",
        "poolCount": len(services.cache),
        "refreshing": services.refresher.is_running,
        "lastRefresh": last.to_dict() if last else None,
    }


@router.get("/pools")
async def list_pools(services: Services = Depends(get_services)):
    """Current cache snapshot; never touches the chain."""
    try:
        pools = [record.to_dict() for record in services.cache.records()]
    except Exception as e:
        log.error(f"Error getting pools from cache: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch pools", "message": str(e), "pools": []},
        )
    return {
        "timestamp": int(time.time() * 1000),
        "poolCount": len(pools),
        "pools": pools,
    }


@router.get("/pool/{address}")
async def get_pool(address: str, services: Services = Depends(get_services)):
    """Cached pool if fresh, otherwise a live decode (written back when it has liquidity)."""
    try:
        now = time.time()
        cached = services.cache.get(address)
        if cached is not None and cached.is_fresh(services.cache_duration, now):
            return cached.record.to_dict()

        record = await services.decoder.fetch(address)
        if record is None:
            return JSONResponse(status_code=404, content={"error": "Pool not found"})
        if record.has_liquidity:
            services.cache.set(record, timestamp=now)
        return record.to_dict()
    except Exception:
        log.exception(f"Error fetching pool {address}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch pool data"})
