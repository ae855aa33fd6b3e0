from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.api.pages import index_page

router = APIRouter(tags=["home"])


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Entry page: a single link that starts the login flow."""
    return HTMLResponse(index_page())
