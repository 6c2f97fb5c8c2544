"""
Web routes for the report page and its static assets.

The page is rendered server-side from the last committed ledger snapshot.
Behavior that changes the ledger (reload, manual transfer) goes through the
WebSocket channel from ``static/script.js``; the page then reloads itself
when the server pushes ``reload``.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from coop_banker.core.report import format_balance, format_timestamp, is_important
from coop_banker.core.service import BankerService
from coop_banker.ledger.types import Operation, OperationKind

# Resolve paths relative to this file for predictable packaging.
_WEB_ROOT = Path(__file__).resolve().parent
_TEMPLATES_DIR = _WEB_ROOT / "templates"
_STATIC_DIR = _WEB_ROOT / "static"
# Bump when script.js or styles.css change so browsers refetch them.
ASSET_VERSION = "20261019a"


def describe_operation(operation: Operation) -> str:
    """One-line, human-readable summary of a ledger entry."""
    if operation.kind is OperationKind.PLAYER_PURSE:
        verb = "withdrew" if operation.is_withdrawal else "deposited"
        text = f"{operation.username} {verb} {format_balance(abs(operation.amount or 0))}"
    elif operation.kind is OperationKind.PLAYER_TRANSFER:
        text = (
            f"{operation.sender} gave {format_balance(operation.amount or 0)} "
            f"to {operation.username}"
        )
    elif operation.kind is OperationKind.BANK_INTERESTS:
        text = f"Bank interest of {format_balance(operation.amount or 0)}"
    else:
        return "Missed transactions: the feed page was full"

    if operation.repeat_count > 1:
        text += f" (x{operation.repeat_count})"
    return text


def build_templates(timezone: str = "Europe/Paris") -> Jinja2Templates:
    """Jinja2 environment with the report filters registered."""
    templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
    templates.env.filters["balance"] = format_balance
    templates.env.filters["timestamp"] = partial(format_timestamp, timezone=timezone)
    templates.env.filters["important"] = is_important
    templates.env.filters["describe"] = describe_operation
    return templates


def build_report_router(service: BankerService, templates: Jinja2Templates) -> APIRouter:
    """
    Build the router serving the report page.

    Args:
        service: Banker service whose committed snapshot is rendered.
        templates: Jinja2 environment from :func:`build_templates`.
    """
    router = APIRouter()

    @router.get("/", response_class=HTMLResponse)
    async def report_page(request: Request):
        """Render the co-op bank report."""
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "report": service.report(),
                "asset_version": ASSET_VERSION,
            },
        )

    return router


def register_web_routes(
    app: FastAPI, service: BankerService, *, timezone: str = "Europe/Paris"
) -> None:
    """
    Register the report page and static assets on the FastAPI app.

    Static files must be mounted on the FastAPI app (not an APIRouter),
    otherwise Starlette will not serve the assets correctly.
    """
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")
    app.include_router(build_report_router(service, build_templates(timezone)))
