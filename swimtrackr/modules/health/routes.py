from fastapi import APIRouter, Depends
from swimtrackr.config.settings import Settings
from swimtrackr.core.rate_limit import limiter
from datetime import datetime, timezone

router = APIRouter(tags=["health"])


def get_runtime_settings() -> Settings:
    """Re-read the environment on every call so the report reflects the live process"""
    return Settings()


def presence(value) -> str:
    return "set" if value else "missing"


@router.get("/health")
@limiter.exempt
async def health(runtime: Settings = Depends(get_runtime_settings)):
    """Liveness plus a report of which Supabase settings are configured (never their values)"""
    return {
        "status": "ok",
        "environment": {
            "supabaseUrl": presence(runtime.supabase_url),
            "supabaseAnonKey": presence(runtime.supabase_anon_key),
            "environment": runtime.environment,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
