"""FastAPI web dashboard for CabinetWatch."""

import logging
import os
from pathlib import Path
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from . import __version__
from .aggregation import assess_fleet
from .config import Config, get_default_config, load_config
from .exceptions import CabinetWatchError, SnapshotValidationError
from .generator import SnapshotSource, SyntheticSource
from .models import FleetAssessment, Severity
from .severity import (
    get_leak_icon,
    get_severity_emoji,
    get_severity_label,
    severity_to_css_class,
)
from .snapshot import load_snapshot

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


def get_config() -> Config:
    """Get configuration from the environment-specified file or defaults."""
    config_path = os.environ.get("CABINETWATCH_CONFIG")
    if config_path:
        try:
            return load_config(config_path)
        except Exception:
            logger.exception("Failed to load config from %s, using defaults", config_path)
    return get_default_config()


class DashboardState:
    """Holds the last assessment that aggregated successfully.

    Every refresh asks the source for a whole new snapshot. A snapshot that
    fails to assess is rejected and the previous assessment is kept, marked
    stale.
    """

    def __init__(self, source: SnapshotSource, config: Config):
        self.source = source
        self.config = config
        self.last_good: FleetAssessment | None = None
        self.stale = False

    def refresh(self) -> FleetAssessment | None:
        try:
            snapshot = self.source.snapshot()
            assessment = assess_fleet(snapshot, self.config)
        except (CabinetWatchError, ValueError):
            logger.exception("Snapshot rejected, keeping last known good assessment")
            self.stale = self.last_good is not None
            return self.last_good

        self.last_good = assessment
        self.stale = False
        return assessment


def severity_to_badge_class(severity: Severity) -> str:
    """Convert severity to badge CSS classes."""
    return f"badge {severity_to_css_class(severity)}"


def create_app(config: Config | None = None, source: SnapshotSource | None = None) -> FastAPI:
    """Build the dashboard application.

    Args:
        config: Configuration. Loaded from CABINETWATCH_CONFIG if None.
        source: Snapshot source. Synthetic data if None.
    """
    config = config or get_config()
    state = DashboardState(source or SyntheticSource(config), config)

    app = FastAPI(
        title="CabinetWatch",
        description="Liquid cooling cabinet monitor",
        version=__version__,
    )
    app.state.dashboard = state

    templates = Jinja2Templates(directory=TEMPLATES_DIR)
    templates.env.filters["severity_emoji"] = get_severity_emoji
    templates.env.filters["severity_label"] = get_severity_label
    templates.env.filters["severity_class"] = severity_to_css_class
    templates.env.filters["leak_icon"] = get_leak_icon
    templates.env.globals["severity_to_badge_class"] = severity_to_badge_class
    templates.env.globals["severity_levels"] = list(reversed(list(Severity)))
    templates.env.globals["dashboard"] = config.dashboard

    def unavailable(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(request, "unavailable.html", {}, status_code=503)

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request):
        """Render the fleet overview."""
        assessment = state.refresh()
        if assessment is None:
            return unavailable(request)
        return templates.TemplateResponse(
            request,
            "index.html",
            {"assessment": assessment, "summary": assessment.summary, "stale": state.stale},
        )

    @app.get("/cabinet/{cabinet_id}", response_class=HTMLResponse)
    async def cabinet_detail(request: Request, cabinet_id: str):
        """Render the detail page for one cabinet."""
        assessment = state.refresh()
        if assessment is None:
            return unavailable(request)
        try:
            enclosure = assessment.enclosure(cabinet_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown cabinet: {cabinet_id}")
        return templates.TemplateResponse(
            request,
            "cabinet.html",
            {"assessment": assessment, "enclosure": enclosure, "stale": state.stale},
        )

    @app.get("/api/fleet")
    async def api_fleet():
        """Current fleet assessment as JSON."""
        assessment = state.refresh()
        if assessment is None:
            raise HTTPException(status_code=503, detail="Data unavailable")
        payload = assessment.to_payload()
        payload["stale"] = state.stale
        return payload

    @app.post("/api/assess")
    async def api_assess(snapshot: dict[str, Any] = Body(...)):
        """Assess a snapshot supplied by the caller."""
        try:
            assessment = assess_fleet(load_snapshot(snapshot), config)
        except SnapshotValidationError as e:
            return JSONResponse(status_code=422, content={"detail": str(e), "errors": e.errors})
        except CabinetWatchError as e:
            return JSONResponse(status_code=422, content={"detail": str(e)})
        return assessment.to_payload()

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
