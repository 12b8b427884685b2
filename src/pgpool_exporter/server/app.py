"""FastAPI application serving the metrics endpoint."""

import asyncio
from datetime import datetime

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from pgpool_exporter import __version__
from pgpool_exporter.config import Config
from pgpool_exporter.exporter import EXPORTER_NAME


def landing_page(metrics_path: str) -> str:
    return f"""<html>
<head><title>{EXPORTER_NAME} v{__version__}</title></head>
<body>
<h1>{EXPORTER_NAME} v{__version__}</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def create_app(config: Config, registry: CollectorRegistry) -> FastAPI:
    """Create FastAPI exporter application.

    Args:
        config: Application configuration.
        registry: Registry rendered on the telemetry path.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Pgpool2 Exporter",
        description="Prometheus exporter for Pgpool-II PCP statistics",
        version=__version__,
    )
    app.state.config = config
    app.state.registry = registry

    metrics_path = config.web.telemetry_path

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Landing page linking to the metrics."""
        return HTMLResponse(landing_page(metrics_path))

    @app.get(metrics_path)
    async def metrics() -> Response:
        """Run a scrape cycle and render it in Prometheus text format."""
        # PCP commands block, keep them off the event loop
        payload = await asyncio.to_thread(generate_latest, registry)
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def healthcheck() -> dict:
        """Application health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
        }

    return app
