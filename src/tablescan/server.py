"""HTTP REST server for tablescan."""

import logging
import time
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from tablescan import __version__
from tablescan.engine import Classifier, Scanner
from tablescan.models import AddressedCell
from tablescan.registry import load_registry, DetectorRegistry
from tablescan.table import MalformedTableError

logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "tablescan_requests_total",
    "Total requests",
    ["endpoint", "status"],
)
REQUEST_DURATION = Histogram(
    "tablescan_request_duration_seconds",
    "Request duration in seconds",
    ["endpoint"],
)
CELLS_SCANNED = Counter(
    "tablescan_cells_scanned_total",
    "Total table cells scanned",
)
FINDINGS = Counter(
    "tablescan_findings_total",
    "Total findings",
    ["code"],
)


# Request/Response models
class ScanRequest(BaseModel):
    """Request model for /scan endpoint."""

    rows: list[list[str]]
    format: Optional[str] = None
    strict: bool = True


class ClassifyRequest(BaseModel):
    """Request model for /classify endpoint."""

    text: str


class ClassifyResponse(BaseModel):
    """Response model for /classify endpoint."""

    code: Optional[str] = None
    message: Optional[str] = None


class DetectorInfo(BaseModel):
    """Single entry of the /detectors listing."""

    code: str
    message: str
    namespace: str
    category: str
    anchored: bool
    description: str


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str
    version: str
    detectors_loaded: int
    namespaces: list[str]


class ReloadResponse(BaseModel):
    """Response model for /reload endpoint."""

    status: str
    detectors_loaded: int
    message: str


class TablescanServer:
    """Server wrapper for managing state."""

    def __init__(self, config: Optional[dict[str, Any]] = None) -> None:
        """Initialize server with configuration."""
        self.config = config or {}
        self.registry: Optional[DetectorRegistry] = None
        self.scanner: Optional[Scanner] = None
        self._load_detectors()

    def _load_detectors(self) -> None:
        """Load detectors from configuration."""
        paths = self.config.get("registry", {}).get("paths")
        scan_config = self.config.get("scan", {})

        logger.info(f"Loading detectors from: {paths}")
        registry = load_registry(paths=paths)
        self.scanner = Scanner(
            registry,
            workers=scan_config.get("workers", 1),
            format=scan_config.get("format", "csv"),
        )
        self.registry = registry
        logger.info(f"Loaded {len(registry)} detectors")

    def reload_detectors(self) -> dict[str, Any]:
        """Reload detectors from files."""
        try:
            old_count = len(self.registry) if self.registry else 0
            self._load_detectors()
            new_count = len(self.registry) if self.registry else 0
            return {
                "status": "ok",
                "detectors_loaded": new_count,
                "message": f"Reloaded successfully ({old_count} -> {new_count} detectors)",
            }
        except Exception as e:
            logger.error(f"Failed to reload detectors: {e}")
            raise HTTPException(status_code=500, detail=f"Reload failed: {str(e)}")


def create_app(config: Optional[dict[str, Any]] = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Server configuration dictionary

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="tablescan",
        description="Sensitive data detection for tabular datasets",
        version=__version__,
    )

    server = TablescanServer(config)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Any) -> Response:
        """Record metrics for each request."""
        start_time = time.time()
        endpoint = request.url.path

        response = await call_next(request)

        duration = time.time() - start_time
        REQUEST_COUNT.labels(endpoint=endpoint, status=response.status_code).inc()
        REQUEST_DURATION.labels(endpoint=endpoint).observe(duration)

        return response

    @app.post("/scan")
    def scan(request: ScanRequest) -> dict[str, Any]:
        """Scan a table given as header row plus data rows."""
        if server.scanner is None:
            raise HTTPException(status_code=500, detail="Scanner not initialized")

        scanner = server.scanner
        if request.format and request.format != scanner.format:
            scanner = Scanner(server.scanner.registry, workers=scanner.workers, format=request.format)

        try:
            report = scanner.analyse(request.rows, strict=request.strict)
        except MalformedTableError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception as e:
            logger.error(f"Scan error: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        CELLS_SCANNED.inc(report.item_count)
        for finding in report.errors:
            FINDINGS.labels(code=finding.code).inc()

        return report.to_dict()

    @app.post("/classify", response_model=ClassifyResponse)
    async def classify(request: ClassifyRequest) -> ClassifyResponse:
        """Classify a single value."""
        if server.registry is None:
            raise HTTPException(status_code=500, detail="Registry not initialized")

        cell = AddressedCell(value=request.text, column_name="", row_index=0, column_index=0)
        finding = Classifier(server.registry).classify(cell)
        if finding is None:
            return ClassifyResponse()
        return ClassifyResponse(code=finding.code, message=finding.message)

    @app.get("/detectors", response_model=list[DetectorInfo])
    async def detectors() -> list[DetectorInfo]:
        """List detectors in priority order."""
        if server.registry is None:
            raise HTTPException(status_code=503, detail="Registry not initialized")

        return [
            DetectorInfo(
                code=d.code,
                message=d.message,
                namespace=d.namespace,
                category=d.category.value,
                anchored=d.anchored,
                description=d.description,
            )
            for d in server.registry
        ]

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        if server.registry is None:
            raise HTTPException(status_code=503, detail="Registry not initialized")

        return HealthResponse(
            status="healthy",
            version=__version__,
            detectors_loaded=len(server.registry),
            namespaces=server.registry.namespaces,
        )

    @app.post("/reload", response_model=ReloadResponse)
    async def reload() -> ReloadResponse:
        """Reload detectors from files."""
        result = server.reload_detectors()
        return ReloadResponse(**result)

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
