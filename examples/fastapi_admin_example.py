"""FastAPI Admin Example - crontinject control over HTTP

This example mounts the inject control routes into a FastAPI application.

Requirements:
    pip install crontinject[fastapi]

Usage:
    python examples/fastapi_admin_example.py

Then try:
    curl -X POST http://localhost:8000/admin/inject/ticker
    curl -X POST http://localhost:8000/admin/cronti/next-dates \
         -H 'Content-Type: application/json' \
         -d '{"method": "onTime", "args": ["09:00"]}'
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from crontinject import InjectConfig, InjectNode, NodeRegistry, PropertySpec, PropertyType
from crontinject.admin.fastapi import create_router
from crontinject.management import InjectControl

registry = NodeRegistry()


def log_message(msg: dict):
    print(f"inject: {msg}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the nodes with the server and stop them on shutdown."""
    ticker = registry.register(
        InjectNode(
            InjectConfig(
                props=[
                    PropertySpec("payload", "", PropertyType.DATE),
                    PropertySpec("topic", "tick"),
                ],
                crontab="*/1 * * * *",
            ),
            send=log_message,
            node_id="ticker",
        )
    )
    ticker.start()
    yield
    ticker.close()
    registry.unregister("ticker")


app = FastAPI(title="crontinject admin", lifespan=lifespan)
app.include_router(create_router(InjectControl(registry)), prefix="/admin", tags=["inject"])


if __name__ == "__main__":
    uvicorn.run(
        "fastapi_admin_example:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
    )
