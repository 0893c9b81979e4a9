from prometheus_fastapi_instrumentator import Instrumentator

from app.core.logging import setup_logging
from . import app as tracker_app

setup_logging()
app = tracker_app
Instrumentator().instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}
