"""
HTTP entry points — OAuth init/callback, cron registration, query editor.

Each handler is a short pipeline of fallible steps (see ``core.pipeline``).
Client input problems raise ``NotifierError`` subclasses that the handler in
``api.middleware`` turns into a specific 4xx message; any upstream failure is
logged and answered with the same generic 500.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from api.dependencies import (
    get_oauth_client,
    get_query_store,
    get_registrar,
    get_run_time_store,
    get_settings,
    get_token_store,
)
from api.identity import sign_email, verify_email_signature
from api.pages import callback_page, query_form_page
from config.settings import Settings
from connectors.oauth_client import OAuthClient
from connectors.token_manager import TokenStore, fetch_token
from core.errors import (
    GENERIC_FAILURE_MESSAGE,
    BadRequestError,
    IdentityVerificationError,
    MethodNotAllowedError,
    TokenExchangeError,
)
from core.pipeline import run_pipeline
from database.helpers import QueryStore, RunTimeStore
from scheduling.registrar import SchedulingRegistrar
from utils.validators import require_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifier"])


def _failure() -> PlainTextResponse:
    return PlainTextResponse(GENERIC_FAILURE_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


# ── OAuth ──────────────────────────────────────────────────────────────


@router.get("/oauth2init")
async def oauth2init(client: OAuthClient = Depends(get_oauth_client)) -> RedirectResponse:
    """
    Redirect to the Google consent screen.

    Only new users (or those who want to refresh their authorization)
    need to visit this page.
    """
    return RedirectResponse(client.generate_auth_url())


@router.get("/oauth2callback")
async def oauth2callback(
    code: Optional[str] = Query(None),
    client: OAuthClient = Depends(get_oauth_client),
    store: TokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Exchange the authorization code, resolve the user's email and store
    the credential under it.  Success is reported only once the
    credential has been persisted.
    """

    async def exchange_code(_: Any):
        if not code:
            raise TokenExchangeError("Callback request carried no authorization code")
        return await client.get_token(code)

    async def apply_credentials(credential):
        client.set_credentials(credential)
        return credential

    async def resolve_email(_: Any) -> str:
        return await client.get_profile_email()

    async def persist_credential(email: str) -> str:
        await store.save_token(email, client.get_credentials())
        return email

    result = await run_pipeline(
        [
            ("exchange_code", exchange_code),
            ("apply_credentials", apply_credentials),
            ("resolve_email", resolve_email),
            ("persist_credential", persist_credential),
        ]
    )
    if not result.ok:
        return _failure()

    email = result.value
    logger.info("Log initialized for %s", email)
    signature = sign_email(email, settings.query_signing_secret)
    return HTMLResponse(callback_page(email, signature), status_code=status.HTTP_200_OK)


# ── Scheduling ─────────────────────────────────────────────────────────


@router.get("/setCron")
async def set_cron(
    email_address: Optional[str] = Query(None, alias="emailAddress"),
    client: OAuthClient = Depends(get_oauth_client),
    store: TokenStore = Depends(get_token_store),
    registrar: SchedulingRegistrar = Depends(get_registrar),
    run_times: RunTimeStore = Depends(get_run_time_store),
) -> Response:
    """Register the recurring Gmail check for an authorized user."""
    email = require_email(email_address)

    created_at = datetime.now(timezone.utc)
    result = await run_pipeline(
        [
            ("fetch_token", lambda _: fetch_token(client, store, email)),
            ("ensure_topic", lambda _: registrar.ensure_topic(email)),
            ("register_job", lambda _: registrar.register_job(email, created_at)),
            ("save_last_run_time", lambda _: run_times.set_last_run_time(email, created_at)),
        ]
    )
    if not result.ok:
        return _failure()

    return PlainTextResponse("Cron initialized!", status_code=status.HTTP_200_OK)


# ── Query editor ───────────────────────────────────────────────────────


async def _read_form(request: Request) -> Dict[str, Any]:
    if request.headers.get("content-type", "").startswith("application/json"):
        body = await request.json()
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return dict(form)


@router.api_route("/setEditQuery", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def set_edit_query(
    request: Request,
    client: OAuthClient = Depends(get_oauth_client),
    store: TokenStore = Depends(get_token_store),
    queries: QueryStore = Depends(get_query_store),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Show (GET) or overwrite (POST) the stored search query."""
    if request.method == "GET":
        return await _show_query(request, client, store, queries)
    if request.method == "POST":
        return await _save_query(request, queries, settings)
    raise MethodNotAllowedError("GET, POST")


async def _show_query(
    request: Request,
    client: OAuthClient,
    store: TokenStore,
    queries: QueryStore,
) -> Response:
    email = require_email(request.query_params.get("emailAddress"))

    result = await run_pipeline(
        [
            ("fetch_token", lambda _: fetch_token(client, store, email)),
            ("load_query", lambda _: queries.get_query(email)),
        ]
    )
    if not result.ok:
        return _failure()

    stored = result.value
    signature = request.query_params.get("sig", "")
    return HTMLResponse(
        query_form_page(email, stored.query if stored else None, signature),
        status_code=status.HTTP_200_OK,
    )


async def _save_query(request: Request, queries: QueryStore, settings: Settings) -> Response:
    try:
        form = await _read_form(request)
    except ValueError as exc:
        logger.warning("Unreadable query-editor body: %s", exc)
        raise BadRequestError("Malformed request body.") from exc

    raw_email = form.get("emailAddress")
    query = form.get("query")
    if not raw_email or query is None:
        raise BadRequestError("Both emailAddress and query are required.")
    email = require_email(str(raw_email))

    if settings.verify_query_identity and not verify_email_signature(
        email, form.get("sig"), settings.query_signing_secret
    ):
        logger.warning("Rejected query update for %s: signature mismatch", email)
        raise IdentityVerificationError("Could not verify emailAddress; authorize again via /oauth2init.")

    result = await run_pipeline([("save_query", lambda _: queries.set_query(email, str(query)))])
    if not result.ok:
        return _failure()

    return PlainTextResponse(f'Query "{query}" saved for {email}.', status_code=status.HTTP_200_OK)


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}
