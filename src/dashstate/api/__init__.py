"""
FastAPI application for dashstate.

API Endpoints:
- GET /api/state?list=1 - Manifest of all dashboards
- GET /api/state?dash=<id> - Dashboard state
- POST /api/state?dash=<id> - Save dashboard state
- DELETE /api/state?dash=<id> - Delete a dashboard
- GET /health - Health check

Usage:
    # Run the server
    uvicorn dashstate.api.app:app --reload

    # Or from the CLI
    dashstate serve
"""

from dashstate.api.app import app

__all__ = ["app"]
