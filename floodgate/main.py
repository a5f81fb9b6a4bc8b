import logging
from fastapi import FastAPI, Request
from floodgate.clock import Clock
from floodgate.config import LOG_LEVEL, TRUSTED_PROXY_NETS, load_guard_settings
from floodgate.guard import Guard
from floodgate.middleware import MARKING_STATE_ATTRIBUTE, GuardMiddleware
from floodgate.models import GuardSettings
from floodgate.registry import MonitorRegistry
from floodgate.routes import guard, health
from floodgate.security import parse_trusted_networks


def create_app(settings: GuardSettings | None = None, clock: Clock | None = None) -> FastAPI:
    logging.getLogger("floodgate").setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    app = FastAPI(title="floodgate", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.registry = MonitorRegistry()
    app.state.guard = Guard(settings or load_guard_settings(), app.state.registry, clock=clock)

    app.add_middleware(GuardMiddleware, trusted_proxies=parse_trusted_networks(TRUSTED_PROXY_NETS))

    @app.get("/")
    def root(request: Request):
        return {"ok": True, "marked": getattr(request.state, MARKING_STATE_ATTRIBUTE, None)}

    app.include_router(health.router)
    app.include_router(guard.router)
    return app


app = create_app()
