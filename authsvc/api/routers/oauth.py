from __future__ import annotations

from html import escape
from urllib.parse import urlencode

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, RedirectResponse

from authsvc.shared.config import get_settings


router = APIRouter(tags=["oauth"])

ERROR_PAGE = """<html>
  <body>
    <h1>Authentication Error</h1>
    <p>{message}</p>
    <p>Please try again.</p>
  </body>
</html>
"""


def mobile_callback_url(scheme: str, *, code: str, state: str | None) -> str:
    return f"{scheme}://oauth/callback?" + urlencode({"code": code, "state": state or ""})


@router.get("/oauth/callback", include_in_schema=False)
def oauth_browser_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
):
    """Hand the Google authorization code back to the mobile app."""
    if error:
        return HTMLResponse(ERROR_PAGE.format(message=f"Error: {escape(error)}"), status_code=400)
    if not code:
        return HTMLResponse(
            ERROR_PAGE.format(message="No authorization code received."),
            status_code=400,
        )
    scheme = get_settings().mobile_redirect_scheme
    return RedirectResponse(mobile_callback_url(scheme, code=code, state=state), status_code=302)
