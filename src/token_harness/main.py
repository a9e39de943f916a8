"""
OpenID Connect Token Test Harness

This FastAPI application lets a developer drive the authorization code flow
against an identity provider by hand: enter client details, get redirected to
the provider's login page, exchange the returned code for tokens, then refresh
or introspect them. Every step is logged to the console.
"""

from fastapi import FastAPI, Request, Depends, Form
from typing import AsyncIterator, Callable, Optional
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.datastructures import QueryParams
from starlette.middleware.sessions import SessionMiddleware
from datetime import timedelta
from pathlib import Path
import json
import httpx

from ..shared.errors import HarnessError
from ..shared.logging_utils import ComponentType, MessageType, create_logger
from ..shared.oauth_models import ClientConfiguration, TokenTypeHint
from ..shared.security import SecurityHeaders
from .flow import begin_login, complete_login, is_redirect_return
from .oidc import computed_endpoints, exchange_code_for_token, introspect_token, refresh_token
from .settings import load_settings
from .storage import HarnessSession, SessionStore

settings = load_settings()

app = FastAPI(
    title="OIDC Token Test Harness",
    description="Manual test harness for the OAuth 2.0 authorization code flow",
    version="1.0.0"
)

# The cookie only carries the session id; the record lives in SessionStore
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie="token_harness_session",
    same_site="lax"
)

templates_dir = Path(__file__).parent / "templates"
static_dir = Path(__file__).parent / "static"

templates = Jinja2Templates(directory=str(templates_dir))
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

logger = create_logger(ComponentType.HARNESS)

store = SessionStore(
    settings.default_client_configuration(),
    idle_timeout=timedelta(minutes=settings.session_idle_minutes),
    max_sessions=settings.max_sessions
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add no-cache and framing headers to every response; pages carry tokens."""
    response = await call_next(request)
    for header_name, header_value in SecurityHeaders.get_harness_security_headers().items():
        response.headers[header_name] = header_value
    return response


def get_session(request: Request) -> HarnessSession:
    """Resolve the harness session bound to the browser's session cookie."""
    session = store.get_or_create(request.session.get("sid"))
    request.session["sid"] = session.session_id
    return session


def get_http_client_factory() -> Callable[[], httpx.AsyncClient]:
    """Constructor for identity provider clients."""
    return lambda: httpx.AsyncClient(timeout=settings.http_timeout)


async def get_http_client(
    make_client: Callable[[], httpx.AsyncClient] = Depends(get_http_client_factory)
) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client for identity provider calls, scoped to one request."""
    async with make_client() as client:
        yield client


def config_from_form(
    api_origin: str = Form(""),
    root_path: str = Form(""),
    realm: str = Form(""),
    client_id: str = Form(""),
    client_secret: str = Form(""),
    scope: str = Form(""),
    redirect_uri: str = Form("")
) -> ClientConfiguration:
    """Build a configuration from the harness form; values are kept as entered."""
    return ClientConfiguration(
        api_origin=api_origin,
        root_path=root_path,
        realm=realm,
        client_id=client_id,
        client_secret=client_secret,
        scope=scope,
        redirect_uri=redirect_uri
    )


def default_redirect_uri(request: Request) -> str:
    """The harness root, where provider redirects are handled."""
    return str(request.base_url)


def _record_error(session: HarnessSession, operation: str, error: HarnessError):
    session.error = str(error)
    logger.log_error(
        type(error).__name__,
        str(error),
        {
            "operation": operation,
            "status_code": getattr(error, "status_code", None)
        }
    )


def _back_to_page() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


async def _handle_redirect(session: HarnessSession, params: QueryParams,
                           http_client: httpx.AsyncClient):
    """Verify the returned state and exchange the code for tokens."""
    logger.log_oauth_message(
        "IDENTITY-PROVIDER", "HARNESS",
        "Authorization Redirect Received",
        {
            "code": params.get("code"),
            "state": params.get("state"),
            "error": params.get("error"),
            "error_description": params.get("error_description")
        }
    )

    try:
        code, config_at_auth = complete_login(session, params)
    except HarnessError as e:
        _record_error(session, "redirect", e)
        return

    session.config = config_at_auth
    logger.log_oauth_message(
        "HARNESS", "HARNESS",
        MessageType.STATE_VERIFICATION.value,
        {"state_validated": True, "next_step": "token_exchange"}
    )

    endpoints = computed_endpoints(config_at_auth)
    logger.log_token_operation(
        "exchange",
        {
            "endpoint": endpoints["token"],
            "grant_type": "authorization_code",
            "client_id": config_at_auth.client_id,
            "client_secret": config_at_auth.client_secret,
            "code": code
        }
    )

    try:
        token = await exchange_code_for_token(config_at_auth, code, http_client=http_client)
    except HarnessError as e:
        _record_error(session, "token_exchange", e)
        return

    session.token = token
    session.introspection = None
    session.error = None

    logger.log_oauth_message(
        "IDENTITY-PROVIDER", "HARNESS",
        MessageType.RESPONSE.value,
        {
            "access_token": token.access_token,
            "token_type": token.token_type,
            "expires_in": token.expires_in,
            "id_token_present": token.id_token is not None
        }
    )


@app.get("/", response_class=HTMLResponse)
async def harness_page(request: Request,
                       session: HarnessSession = Depends(get_session),
                       make_client: Callable[[], httpx.AsyncClient] = Depends(get_http_client_factory)):
    """
    Render the harness page.

    When the query carries `code` or `error` this is the provider redirect:
    it is handled first, then the browser is sent back to a clean `/` so a
    reload does not replay the code. Only this branch opens an HTTP client.
    """
    if is_redirect_return(request.query_params):
        async with make_client() as http_client:
            await _handle_redirect(session, request.query_params, http_client)
        return _back_to_page()

    config = session.config
    if not config.redirect_uri:
        config = config.model_copy(update={"redirect_uri": default_redirect_uri(request)})

    introspection_json: Optional[str] = None
    if session.introspection is not None:
        introspection_json = json.dumps(session.introspection.model_dump(exclude_none=True), indent=2)

    return templates.TemplateResponse(request, "index.html", {
        "config": config,
        "endpoints": computed_endpoints(config),
        "token": session.token,
        "introspection_json": introspection_json,
        "error": session.error,
        "login_pending": session.pending_state is not None
    })


@app.post("/config")
async def save_config(session: HarnessSession = Depends(get_session),
                      config: ClientConfiguration = Depends(config_from_form)):
    """Remember the entered configuration for this browser session."""
    session.config = config
    return _back_to_page()


@app.post("/login")
async def start_login(session: HarnessSession = Depends(get_session),
                      config: ClientConfiguration = Depends(config_from_form)):
    """
    Start the authorization code flow.

    Stores a fresh state and a snapshot of the configuration, then sends the
    browser to the provider's authorization endpoint.
    """
    try:
        authorization_url, state = begin_login(session, config)
    except HarnessError as e:
        _record_error(session, "login", e)
        return _back_to_page()

    logger.log_oauth_message(
        "HARNESS", "BROWSER",
        MessageType.REDIRECT.value,
        {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "scope": config.scope,
            "state": state,
            "authorization_url": authorization_url
        }
    )

    return RedirectResponse(url=authorization_url, status_code=303)


@app.post("/refresh")
async def refresh(session: HarnessSession = Depends(get_session),
                  http_client: httpx.AsyncClient = Depends(get_http_client)):
    """Exchange the stored refresh token for new tokens."""
    if session.token is None:
        session.error = "No refresh token yet; log in first."
        return _back_to_page()

    config = session.config
    logger.log_token_operation(
        "refresh",
        {
            "endpoint": computed_endpoints(config)["token"],
            "client_id": config.client_id,
            "refresh_token": session.token.refresh_token,
            "scope": config.scope.strip() or None
        }
    )

    try:
        token = await refresh_token(config, session.token.refresh_token, http_client=http_client)
    except HarnessError as e:
        _record_error(session, "token_refresh", e)
        return _back_to_page()

    session.token = token
    session.introspection = None
    session.error = None
    return _back_to_page()


@app.post("/introspect")
async def introspect(session: HarnessSession = Depends(get_session),
                     http_client: httpx.AsyncClient = Depends(get_http_client),
                     token_type_hint: TokenTypeHint = Form(TokenTypeHint.ACCESS_TOKEN)):
    """Introspect the stored access token, or the refresh token when hinted."""
    if session.token is None:
        session.error = "No token to introspect yet; log in first."
        return _back_to_page()

    if token_type_hint == TokenTypeHint.REFRESH_TOKEN:
        token_value = session.token.refresh_token
    else:
        token_value = session.token.access_token

    logger.log_token_operation(
        "introspection",
        {
            "endpoint": computed_endpoints(session.config)["introspect"],
            "token_type_hint": token_type_hint.value,
            "token": token_value
        }
    )

    try:
        result = await introspect_token(session.config, token_value, token_type_hint,
                                        http_client=http_client)
    except HarnessError as e:
        _record_error(session, "token_introspection", e)
        return _back_to_page()

    session.introspection = result
    session.error = None
    logger.log_oauth_message(
        "IDENTITY-PROVIDER", "HARNESS",
        MessageType.RESPONSE.value,
        {"active": result.active, "username": result.username, "exp": result.exp}
    )
    return _back_to_page()


@app.post("/clear")
async def clear(session: HarnessSession = Depends(get_session)):
    """Forget tokens, errors and any pending login."""
    session.reset_results()
    session.clear_pending_login()
    return _back_to_page()


@app.get("/endpoints")
async def endpoints(request: Request):
    """Endpoints computed from the saved configuration; never starts a session."""
    session = store.get(request.session.get("sid"))
    config = session.config if session is not None else store.default_config
    return JSONResponse(content=computed_endpoints(config))


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "token-harness"}


if __name__ == "__main__":
    import uvicorn
    logger.log_startup(settings.port, {
        "default_api_origin": settings.default_api_origin,
        "default_realm": settings.default_realm
    })
    uvicorn.run(app, host=settings.host, port=settings.port)
