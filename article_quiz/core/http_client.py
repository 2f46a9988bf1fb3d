import httpx
from .config import settings

_http: httpx.AsyncClient | None = None

def get_http_client() -> httpx.AsyncClient:
    """Shared client for the completion endpoint; the per-request timeout is set by the caller."""
    global _http
    if _http is None:
        _http = httpx.AsyncClient(timeout=settings.GENERATION_TIMEOUT_SECONDS)
    return _http

async def close_http_client():
    global _http
    if _http is not None:
        await _http.aclose()
        _http = None
