"""Health check endpoint."""
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    checks = {"app": "ok"}

    guard = request.app.state.guard
    monitor = guard.registered_monitor()
    if monitor is None:
        checks["monitor"] = "error: not initialized"
        return {"status": "unhealthy", "checks": checks}

    checks["monitor"] = "ok"
    checks["active_slots"] = monitor.active_slot_count
    checks["total_requests"] = monitor.total_requests
    return {"status": "ok", "checks": checks}
