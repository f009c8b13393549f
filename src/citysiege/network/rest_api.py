"""REST API — FastAPI application for siege administration.

Mirrors the ``.citysiege`` chat commands as JSON endpoints so an operator
can drive sieges without being logged into the world.

Usage::

    from citysiege.network.rest_api import create_app

    app = create_app(services)
    # Start with uvicorn as an asyncio task alongside the game loop
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, TYPE_CHECKING

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from citysiege.network.jwt_auth import admin_dependency, create_token
from citysiege.network.rest_models import (
    CitySummary,
    CleanupRequest,
    CommandRequest,
    CommandResponse,
    OperationResponse,
    StartRequest,
    StatusResponse,
    StopRequest,
    TokenRequest,
    TokenResponse,
)
from citysiege.network.serialization import city_to_dict, siege_to_dict

if TYPE_CHECKING:
    from citysiege.main import Services

log = logging.getLogger(__name__)


def create_app(services: "Services") -> FastAPI:
    """Factory: create and return a configured FastAPI application.

    The ``services`` reference is captured by closure so every endpoint
    can reach the orchestrator without global state.
    """
    app = FastAPI(title="City Siege Admin", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _summary(event) -> dict[str, Any]:
        return siege_to_dict(event, services.orchestrator.machine, services.clock())

    def _admin_secret() -> str:
        return services.config.admin_secret

    get_current_admin = admin_dependency(_admin_secret)

    # =================================================================
    # Auth (unprotected)
    # =================================================================

    @app.post("/api/auth/token", response_model=TokenResponse)
    async def issue_token(body: TokenRequest) -> dict[str, Any]:
        secret = _admin_secret()
        if secret and hmac.compare_digest(body.secret.encode(), secret.encode()):
            log.info("Admin token issued to %s", body.name)
            return {"success": True, "token": create_token(body.name, secret), "reason": ""}
        log.warning("Rejected admin token request for %s", body.name)
        return {"success": False, "token": "", "reason": "Invalid admin secret"}

    # =================================================================
    # Queries
    # =================================================================

    @app.get("/api/sieges", response_model=StatusResponse)
    async def list_sieges(admin: str = Depends(get_current_admin)) -> dict[str, Any]:
        orchestrator = services.orchestrator
        return {
            "enabled": orchestrator.config.enabled,
            "next_siege_in": orchestrator.seconds_until_next(services.clock()),
            "sieges": [_summary(e) for e in orchestrator.events],
        }

    @app.get("/api/cities", response_model=list[CitySummary])
    async def list_cities(admin: str = Depends(get_current_admin)) -> list[dict[str, Any]]:
        orchestrator = services.orchestrator
        return [city_to_dict(c, orchestrator.active_for(c) is not None)
                for c in orchestrator.cities]

    # =================================================================
    # Siege control
    # =================================================================

    @app.post("/api/sieges/start", response_model=OperationResponse)
    async def start_siege(body: StartRequest,
                          admin: str = Depends(get_current_admin)) -> dict[str, Any]:
        result = services.orchestrator.start_siege(body.city, services.clock())
        if isinstance(result, str):
            return {"success": False, "error": result}
        log.info("Siege at %s started by %s", result.city.name, admin)
        return {"success": True, "siege": _summary(result)}

    @app.post("/api/sieges/stop", response_model=OperationResponse)
    async def stop_siege(body: StopRequest,
                         admin: str = Depends(get_current_admin)) -> dict[str, Any]:
        result = services.orchestrator.stop_siege(body.city, body.winner, services.clock())
        if isinstance(result, str):
            return {"success": False, "error": result}
        log.info("Siege at %s stopped by %s", result.city.name, admin)
        return {"success": True, "siege": _summary(result)}

    @app.post("/api/sieges/cleanup", response_model=OperationResponse)
    async def cleanup(body: CleanupRequest,
                      admin: str = Depends(get_current_admin)) -> dict[str, Any]:
        result = services.orchestrator.cleanup(body.city, services.clock())
        if isinstance(result, str):
            return {"success": False, "error": result}
        return {"success": True, "cleaned": result}

    # =================================================================
    # Generic command passthrough
    # =================================================================

    @app.post("/api/command", response_model=CommandResponse)
    async def run_command(body: CommandRequest,
                          admin: str = Depends(get_current_admin)) -> dict[str, Any]:
        caller = None
        if body.session:
            caller = services.audience.find_session(body.session)
            if caller is None:
                raise HTTPException(status_code=404, detail=f"No session named {body.session}")
        lines = await services.router.dispatch(body.command, caller)
        log.info("Admin %s ran %r", admin, body.command)
        return {"lines": lines}

    return app
