import time
import json
import logging
import asyncio
import os
from typing import Optional
from functools import wraps

logger = logging.getLogger("pebbletrack.telemetry")


def emit_event(event: str, *, route: str, parent_id: Optional[str] = None,
               curriculum_id: Optional[int] = None, lessons: Optional[int] = None,
               error_type: Optional[str] = None, latency_ms: Optional[int] = None,
               ok: Optional[bool] = None):
    payload = {
        "event": event,
        "route": route,
        "parent_id": parent_id,
        "curriculum_id": curriculum_id,
        "lessons": lessons,
        "error_type": error_type,
        "latency_ms": latency_ms,
        "ok": ok,
        "ts": time.time(),
    }
    # log as single-line JSON for easy parsing in prod
    logger.info("telemetry=%s", json.dumps(payload, separators=(",", ":")))

    # persist to Supabase (best-effort, never block the request)
    if os.getenv("ENABLE_TELEMETRY_DB", "0") != "1":
        return

    try:
        from app.core.deps import get_supabase_client
        sb = get_supabase_client()
        sb.table("telemetry_events").insert({k: v for k, v in payload.items() if k != "ts"}).execute()
    except Exception as e:
        logger.error(f"[telemetry.emit_event] {e}", exc_info=True)


def instrument(route: str):
    def deco(fn):
        if asyncio.iscoroutinefunction(fn):
            @wraps(fn)
            async def wrapped_async(*args, **kwargs):
                t0 = time.time()
                ok = True
                err = None
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    ok = False
                    err = str(e.__class__.__name__)
                    raise
                finally:
                    dt = int((time.time() - t0) * 1000)
                    emit_event("api_call", route=route, latency_ms=dt, ok=ok, error_type=err)
            return wrapped_async
        else:
            @wraps(fn)
            def wrapped(*args, **kwargs):
                t0 = time.time()
                ok = True
                err = None
                try:
                    return fn(*args, **kwargs)
                except Exception as e:
                    ok = False
                    err = str(e.__class__.__name__)
                    raise
                finally:
                    dt = int((time.time() - t0) * 1000)
                    emit_event("api_call", route=route, latency_ms=dt, ok=ok, error_type=err)
            return wrapped
    return deco
