"""Navigation operations for MCP adapters (page changes, back, closing)"""

from typing import Any, Dict, Optional

from ..utils.decorators import with_error_handling
from .utils import get_app, respond


def _navigation_state(app) -> Dict[str, Any]:
    return {
        "current_path": app.navigation.current_path,
        "payment_in_progress": app.store.is_processing_payment,
        "guard_active": app.payment_guard.active,
    }


@with_error_handling("Navigation failed")
async def navigate(session_id: Optional[str] = None, path: str = "/", **kwargs) -> Dict[str, Any]:
    app = get_app()
    if not app.navigation.navigate(path):
        return respond(app, False, "Navigation blocked while payment is processing", session_id,
                       **_navigation_state(app))
    return respond(app, True, f"Navigated to {path}", session_id, **_navigation_state(app))


@with_error_handling("Navigation failed")
async def go_back(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    if not app.navigation.back():
        return respond(app, False, "No previous page", session_id, **_navigation_state(app))
    alerts = list(app.navigation.alerts)
    app.navigation.alerts.clear()
    return respond(app, not alerts, alerts[-1] if alerts else "Went back", session_id,
                   **_navigation_state(app))


@with_error_handling("Failed to read navigation state")
async def get_navigation_state(session_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    app = get_app()
    prompt = app.navigation.unload()
    return respond(app, True, "Navigation state", session_id, leave_prompt=prompt, **_navigation_state(app))
