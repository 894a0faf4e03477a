"""FastAPI application entrypoint."""

from fastapi import FastAPI

from triage.config import get_settings
from triage.routers import approvals, preferences, runs, score_history

app = FastAPI(title=get_settings().app_name, version="0.1.0")

app.include_router(approvals.router, tags=["approvals"])
app.include_router(score_history.router, tags=["score-history"])
app.include_router(preferences.router, tags=["preferences"])
app.include_router(runs.router, tags=["runs"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
