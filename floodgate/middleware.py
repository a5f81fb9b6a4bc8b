"""Starlette middleware that runs every request through the application's guard."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from floodgate.security import Network, client_ip

logger = logging.getLogger(__name__)

BLOCKING_HTTP_STATUS = 403
MARKING_STATE_ATTRIBUTE = "floodgate_marked"

_EXEMPT_PREFIXES: Tuple[str, ...] = ("/api/guard", "/health")


class GuardMiddleware(BaseHTTPMiddleware):
    """Reject, mark or pass requests according to `request.app.state.guard`."""

    def __init__(
        self,
        app,
        *,
        trusted_proxies: Sequence[Network] = (),
        exempt_prefixes: Iterable[str] | None = None,
    ) -> None:
        super().__init__(app)
        self._trusted = tuple(trusted_proxies)
        self._exempt: Tuple[str, ...] = tuple(exempt_prefixes if exempt_prefixes is not None else _EXEMPT_PREFIXES)

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        path = request.url.path
        if self._is_exempt(path):
            return await call_next(request)

        guard = request.app.state.guard
        address = client_ip(request, self._trusted)
        if guard.is_request_allowed(address, path):
            return await call_next(request)

        if guard.simulation:
            logger.info("guard [%s] would reject %s %s (simulation)", guard.name, address, path)
            return await call_next(request)

        if guard.blocking:
            logger.debug("guard [%s] rejects %s %s", guard.name, address, path)
            return JSONResponse(status_code=BLOCKING_HTTP_STATUS, content={"detail": "too many requests"})

        setattr(request.state, MARKING_STATE_ATTRIBUTE, guard.name)
        return await call_next(request)

    def _is_exempt(self, path: str) -> bool:
        for prefix in self._exempt:
            if path == prefix or path.startswith(prefix + "/"):
                return True
        return False
