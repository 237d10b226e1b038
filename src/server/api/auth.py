"""API endpoints for connecting Upstox accounts.

Provides the login redirect that starts the OAuth flow and the callbacks
Upstox redirects back to. Callbacks always answer with a redirect to a
frontend landing page.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from src.server.models.auth import AuthErrorResponse, AuthUrlResponse
from src.server.services.auth_service import AuthService, get_auth_service
from src.upstox_oauth import CallbackOutcome, ConfigurationError, StateCookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    body = AuthErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _set_state_cookie(response: Response, cookie: StateCookie) -> None:
    response.set_cookie(
        key=cookie.name,
        value=cookie.value,
        max_age=cookie.max_age,
        path=cookie.path,
        httponly=cookie.http_only,
        secure=cookie.secure,
        samesite=cookie.samesite,
    )


def _callback_redirect(outcome: CallbackOutcome, service: AuthService) -> RedirectResponse:
    response = RedirectResponse(url=outcome.location, status_code=status.HTTP_302_FOUND)
    # The state is spent whatever the outcome; a retry starts at /auth/login
    response.delete_cookie(key=service.cookie_name, path="/")
    return response


@router.get(
    "/login",
    status_code=status.HTTP_302_FOUND,
    summary="Start Upstox authorization",
    responses={
        200: {"model": AuthUrlResponse},
        400: {"model": AuthErrorResponse},
        500: {"model": AuthErrorResponse},
    },
)
def login(
    phone: Optional[str] = Query(default=None, description="User identity"),
    output: Optional[str] = Query(
        default=None,
        alias="format",
        description="'json' returns the URL instead of redirecting",
    ),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    """Redirect the browser to the Upstox authorization dialog.

    Sets the HTTP-only verification cookie checked by the callback. With
    ``format=json`` the URL is returned as ``{"authUrl": ...}`` (the cookie
    is still set) so a page can open it in a new tab.
    """
    phone = (phone or "").strip()
    if not phone:
        return _error(
            status.HTTP_400_BAD_REQUEST, "missing_identity", "phone is required"
        )

    try:
        redirect = service.start_authorization(phone)
    except ConfigurationError as e:
        logger.error(f"Cannot start Upstox authorization: {e.message}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            e.reason,
            "No Upstox app registration configured for this user",
        )

    if output == "json":
        response: Response = JSONResponse(
            content=AuthUrlResponse(authUrl=redirect.location).model_dump()
        )
    else:
        response = RedirectResponse(
            url=redirect.location, status_code=status.HTTP_302_FOUND
        )
    _set_state_cookie(response, redirect.cookie)
    return response


@router.get(
    "/callback",
    status_code=status.HTTP_302_FOUND,
    summary="Upstox callback (identity taken from state)",
)
def callback_from_state(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Handle a callback registered without the identity in its path."""
    outcome = service.complete_authorization(
        None, code, state, request.cookies.get(service.cookie_name), error
    )
    return _callback_redirect(outcome, service)


@router.get(
    "/{identity}/callback",
    status_code=status.HTTP_302_FOUND,
    summary="Upstox callback for a user",
)
def callback(
    identity: str,
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Exchange the authorization code and store the token for ``identity``.

    Always redirects: to the success page once the token is stored, or to
    the error page with ``reason`` and bounded ``details``.
    """
    outcome = service.complete_authorization(
        identity, code, state, request.cookies.get(service.cookie_name), error
    )
    return _callback_redirect(outcome, service)
