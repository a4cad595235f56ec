from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlencode
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from visitdesk import __version__
from visitdesk.auth import BasicGateway, BearerGateway, CredentialStore, PasswordHasher, TokenService
from visitdesk.auth.crud import ADMIN_USERNAME
from visitdesk.auth.errors import (
    InvalidCredentialsError,
    PasswordMismatchError,
    ProtectedUserError,
    UserExistsError,
)
from visitdesk.config import Config, load_config
from visitdesk.db import init_db
from visitdesk.visits import VisitCounter


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def _admin_redirect(message: str, message_type: str = "success") -> RedirectResponse:
    query = urlencode({"message": message, "type": message_type})
    return RedirectResponse(url=f"/admin?{query}", status_code=303)


class LoginRequest(BaseModel):
    username: str
    password: str


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    """Build the application with every collaborator wired from `cfg`.

    Nothing is module-global: two apps built from two configs (different DBs,
    different signing secrets) are fully isolated.
    """
    cfg = cfg or load_config()

    hasher = PasswordHasher(rounds=cfg.AUTH_PASSWORD_ROUNDS)
    tokens = TokenService(secret=cfg.AUTH_JWT_SECRET, ttl_seconds=cfg.AUTH_TOKEN_TTL_SECONDS)
    store = CredentialStore(cfg.DB_DSN, hasher=hasher)
    visits = VisitCounter(cfg.DB_DSN)
    bearer = BearerGateway(tokens)
    basic = BasicGateway(store, hasher, realm=cfg.AUTH_BASIC_REALM)
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        # Storage must be reachable before we serve anything; there is no degraded mode.
        try:
            init_db(cfg.DB_DSN)
            store.bootstrap_admin_if_needed(
                cfg.AUTH_BOOTSTRAP_ADMIN_USERNAME,
                cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD,
            )
        except Exception as e:
            _debug(f"Error connecting to database: {e!r}")
            raise SystemExit(1) from e
        yield

    app = FastAPI(title="visitdesk", version=__version__, lifespan=lifespan)
    app.state.cfg = cfg
    app.state.tokens = tokens
    app.state.store = store
    app.state.visits = visits
    app.state.bearer = bearer
    app.state.basic = basic

    # CORS is mainly needed for local development (Vite on :5173 -> API on :8080).
    _cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if _cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        _debug(f"Invalid request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"detail": "Invalid request body"})

    # -----------------------------
    # Health
    # -----------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    # -----------------------------
    # Auth
    # -----------------------------

    @app.post("/login")
    def login(payload: LoginRequest) -> Dict[str, Any]:
        try:
            user = store.authenticate(payload.username, payload.password)
        except InvalidCredentialsError as e:
            reason = "wrong password" if isinstance(e, PasswordMismatchError) else "unknown user"
            _debug(f"Login failed for '{payload.username}': {reason}")
            raise HTTPException(status_code=401, detail="Invalid credentials")
        except Exception as e:
            _debug(f"Login lookup error for '{payload.username}': {e!r}")
            raise HTTPException(status_code=500, detail="Database error")

        try:
            token = tokens.issue(user.username)
        except Exception as e:
            _debug(f"Token generation failed for '{user.username}': {e!r}")
            raise HTTPException(status_code=500, detail="Error generating token")

        return {"token": token, "user": user.to_public()}

    @app.api_route("/verify", methods=["GET", "POST"], dependencies=[Depends(bearer)])
    def verify() -> Response:
        # The bearer gateway already did the work.
        return Response(status_code=200)

    # -----------------------------
    # Visit counter
    # -----------------------------

    visit_deps = [Depends(bearer)] if cfg.VISITS_REQUIRE_AUTH else []

    @app.get("/", dependencies=visit_deps)
    def view_count() -> Dict[str, int]:
        try:
            count = visits.record_visit()
        except Exception as e:
            _debug(f"Failed to record visit: {e!r}")
            raise HTTPException(status_code=500, detail="Failed to get visit count")
        return {"count": count}

    # -----------------------------
    # Admin console (HTTP Basic)
    # -----------------------------

    @app.get("/admin", response_class=HTMLResponse, dependencies=[Depends(basic)])
    def admin_page(
        request: Request,
        message: str = "",
        message_type: str = Query("", alias="type"),
    ) -> HTMLResponse:
        try:
            users = store.list_users()
        except Exception as e:
            _debug(f"Failed to list users: {e!r}")
            raise HTTPException(status_code=500, detail="Database error")

        return templates.TemplateResponse(
            request,
            "admin.html",
            {
                "users": users,
                "message": message,
                "message_type": message_type if message_type in ("success", "error") else "",
                "protected_username": ADMIN_USERNAME,
            },
        )

    @app.post("/admin/users", dependencies=[Depends(basic)])
    def admin_create_user(username: str = Form(""), password: str = Form("")) -> RedirectResponse:
        if not username.strip() or not password:
            raise HTTPException(status_code=400, detail="Username and password required")

        try:
            user = store.create_user(username, password)
        except UserExistsError:
            _debug(f"Create user failed: '{username.strip()}' already exists")
            raise HTTPException(status_code=500, detail="Error creating user")
        except Exception as e:
            _debug(f"Create user failed for '{username.strip()}': {e!r}")
            raise HTTPException(status_code=500, detail="Error creating user")

        _debug(f"Created user '{user.username}'")
        return _admin_redirect(f"User '{user.username}' created")

    @app.post("/admin/users/delete", dependencies=[Depends(basic)])
    def admin_delete_user(username: str = Form("")) -> RedirectResponse:
        try:
            deleted = store.delete_user(username)
        except ProtectedUserError:
            raise HTTPException(status_code=400, detail="Cannot delete admin user")
        except Exception as e:
            _debug(f"Delete user failed for '{username}': {e!r}")
            raise HTTPException(status_code=500, detail="Error deleting user")

        name = username.strip()
        if not deleted:
            return _admin_redirect(f"User '{name}' not found", "error")
        _debug(f"Deleted user '{name}'")
        return _admin_redirect(f"User '{name}' deleted")

    return app
