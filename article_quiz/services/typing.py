from datetime import datetime, timezone

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def to_iso(value) -> str:
    # Supabase hands back either an ISO string or a datetime; normalize
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return str(value)
