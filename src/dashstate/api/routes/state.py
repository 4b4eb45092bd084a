"""
State API routes.

Single resource for dashboard state, addressed by query parameters:
- GET /api/state?list=1 - Manifest of all dashboards
- GET /api/state?dash=<id> - One dashboard's state
- POST /api/state?dash=<id> - Create or replace a dashboard ({"state": ...})
- DELETE /api/state?dash=<id> - Delete a dashboard (idempotent)
- OPTIONS /api/state - Cross-origin preflight

Other verbs get 405 from the router. Errors are turned into responses by the
exception handlers in dashstate.api.app.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict

from dashstate.api.deps import get_store
from dashstate.core.store import DashboardState, DashboardStore, validate_dashboard_id

router = APIRouter()


class StateUpdate(BaseModel):
    """Request body for POST /api/state."""

    model_config = ConfigDict(extra="ignore")

    state: DashboardState = None  # Opaque dashboard state; absent means null


@router.get("/state")
def read_state(
    dash: str | None = Query(default=None, description="Dashboard id"),
    list_flag: str | None = Query(default=None, alias="list", description="Set to list dashboards"),
    store: DashboardStore = Depends(get_store),
) -> dict[str, Any]:
    """
    List dashboards or read one dashboard.

    Returns:
        {"dashboards": [...]} when ``list`` is set, else {"state": ..., "exists": bool}.
        A dashboard with no document is {"state": null, "exists": false}.
    """
    if list_flag:
        return {"dashboards": [entry.to_json() for entry in store.list_dashboards()]}

    dashboard_id = validate_dashboard_id(dash)
    result = store.get(dashboard_id)
    return {"state": result.state, "exists": result.exists}


@router.post("/state")
def write_state(
    dash: str | None = Query(default=None, description="Dashboard id"),
    payload: StateUpdate | None = Body(default=None),
    store: DashboardStore = Depends(get_store),
) -> dict[str, Any]:
    """
    Create or replace a dashboard, then update the manifest.

    Returns:
        {"ok": true, "commitRef": <commit url or null>}
    """
    dashboard_id = validate_dashboard_id(dash)
    state = payload.state if payload is not None else None
    commit_ref = store.put(dashboard_id, state)
    return {"ok": True, "commitRef": commit_ref}


@router.delete("/state")
def delete_state(
    dash: str | None = Query(default=None, description="Dashboard id"),
    store: DashboardStore = Depends(get_store),
) -> dict[str, Any]:
    """
    Delete a dashboard.

    Returns:
        {"ok": true, "deleted": false} if there was nothing to delete, else
        {"ok": true, "deleted": true, "commitRef": <commit url or null>}
    """
    dashboard_id = validate_dashboard_id(dash)
    outcome = store.delete(dashboard_id)
    if not outcome.deleted:
        return {"ok": True, "deleted": False}
    return {"ok": True, "deleted": True, "commitRef": outcome.commit_ref}


@router.options("/state")
def preflight() -> Response:
    """Answer cross-origin preflight requests."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)
