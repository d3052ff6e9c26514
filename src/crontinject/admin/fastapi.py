"""FastAPI adapter exposing inject control operations over HTTP.

Installation:
    pip install crontinject[fastapi]

Example:
    from fastapi import FastAPI
    from crontinject import NodeRegistry
    from crontinject.management import InjectControl
    from crontinject.admin.fastapi import create_router

    registry = NodeRegistry()
    app = FastAPI()

    app.include_router(
        create_router(InjectControl(registry)),
        prefix="/admin",
        tags=["inject"]
    )
"""

from typing import Any, Optional
import logging

try:
    from fastapi import APIRouter, Body, Response
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel
except ImportError:
    raise ImportError(
        "FastAPI is required for the FastAPI adapter. "
        "Install it with: pip install crontinject[fastapi]"
    )

from crontinject.exceptions import BadRequestError, InternalError, NodeNotFoundError
from crontinject.management import InjectControl

logger = logging.getLogger(__name__)

OVERRIDE_PROPS_KEY = "__user_inject_props__"


class NextDatesRequest(BaseModel):
    """Request model for previewing rule fire dates."""
    method: Optional[str] = None
    args: Any = None
    count: Optional[int] = None


class FastAPIAdapter:
    """FastAPI adapter for inject control.

    Routes:
        POST /inject/{node_id}     - Fire a node now (200 / 404 / 500)
        POST /cronti/next-dates    - Preview rule fire dates (200 / 400 / 500)
        GET  /nodes                - List live nodes (JSON)

    Example:
        adapter = FastAPIAdapter(control)
        app.include_router(adapter.get_routes(), prefix="/admin")
    """

    def __init__(self, control: InjectControl):
        self.control = control

    def get_routes(self) -> APIRouter:
        """Return FastAPI router with the control routes."""
        router = APIRouter()

        @router.post("/inject/{node_id}", name="inject")
        async def inject(node_id: str, body: Optional[dict] = Body(default=None)):
            """Fire a node, optionally with one-off props."""
            props = None
            if body and isinstance(body.get(OVERRIDE_PROPS_KEY), list):
                props = body[OVERRIDE_PROPS_KEY]

            try:
                self.control.force_fire(node_id, props)
            except NodeNotFoundError:
                return Response(status_code=404)
            except InternalError as e:
                logger.error(f"Inject of '{node_id}' failed: {e}")
                return Response(status_code=500)

            return Response(status_code=200)

        @router.post("/cronti/next-dates", response_class=JSONResponse, name="next_dates")
        async def next_dates(request: NextDatesRequest):
            """Preview the next fire dates of a rule."""
            try:
                dates = self.control.preview_next_dates(
                    request.method, request.args, count=request.count
                )
            except BadRequestError as e:
                return JSONResponse(status_code=400, content={"error": str(e)})
            except InternalError as e:
                return JSONResponse(status_code=500, content={"error": str(e)})

            return {"nextDates": [date.isoformat() for date in dates]}

        @router.get("/nodes", response_class=JSONResponse, name="nodes")
        async def nodes():
            """List live nodes and their scheduling state."""
            return self.control.list_nodes()

        return router


def create_router(control: InjectControl) -> APIRouter:
    """Create FastAPI router for inject control.

    Args:
        control: InjectControl bound to the host's node registry

    Returns:
        APIRouter instance ready to be included in FastAPI app
    """
    adapter = FastAPIAdapter(control)
    return adapter.get_routes()
