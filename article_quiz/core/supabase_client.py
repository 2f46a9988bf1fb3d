# article_quiz/core/supabase_client.py
from supabase import acreate_client, AsyncClient
from .config import settings

_supabase: AsyncClient | None = None

async def get_supabase() -> AsyncClient:
    global _supabase
    if _supabase is None:
        if settings.SUPABASE_URL is None or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")
        # the URL comes in as AnyUrl, the client wants str
        _supabase = await acreate_client(
            str(settings.SUPABASE_URL),
            str(settings.SUPABASE_SERVICE_ROLE_KEY),
        )
    return _supabase
