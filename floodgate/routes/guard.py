from typing import Optional
from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse
from floodgate.auth import auth_header_key, safe_address
from floodgate.errors import ConfigurationError
from floodgate.models import AddressStatus, GuardSettings, GuardStats

router = APIRouter(prefix="/api/guard", tags=["guard"])


@router.get("/status", response_class=PlainTextResponse)
def api_guard_status(request: Request, key: str | None = None, x_admin_key: str | None = Header(default=None)):
    auth_header_key(x_admin_key or key)
    return PlainTextResponse(request.app.state.guard.status())


@router.get("/stats", response_model=GuardStats)
def api_guard_stats(request: Request, key: str | None = None, x_admin_key: str | None = Header(default=None)):
    auth_header_key(x_admin_key or key)
    guard = request.app.state.guard
    monitor = guard.monitor
    return GuardStats(
        monitor_name=guard.name,
        mode=guard.settings.mode,
        simulation=guard.simulation,
        total_requests=monitor.total_requests,
        active_slots=monitor.active_slot_count,
        number_of_slots=monitor.number_of_slots,
        allowed_requests_per_slot=monitor.allowed_requests_per_slot,
    )


@router.get("/address/{address}", response_model=AddressStatus)
def api_guard_address(
    address: str,
    request: Request,
    key: str | None = None,
    x_admin_key: str | None = Header(default=None),
):
    auth_header_key(x_admin_key or key)
    address = safe_address(address)
    counter = request.app.state.guard.address_status(address)
    if counter is None:
        return AddressStatus(address=address, found=False)
    return AddressStatus(address=address, found=True, **counter.as_dict())


@router.post("/reload", response_model=GuardStats)
def api_guard_reload(
    request: Request,
    payload: Optional[GuardSettings] = None,
    x_admin_key: str | None = Header(default=None),
):
    auth_header_key(x_admin_key)
    guard = request.app.state.guard
    try:
        if payload is None:
            guard.reload()
        else:
            guard.configure(payload)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return api_guard_stats(request, x_admin_key=x_admin_key)
