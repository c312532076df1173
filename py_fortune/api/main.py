"""FastAPI main application."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Tuple
import numpy as np
import structlog

from ..config import settings
from ..core.delaunay import triangulate
from ..core.fortune import compute_voronoi
from ..core.geometry import BoundingBox, VoronoiError
from ..core.relaxation import relax_points
from ..core.surface import IDWSurface
from ..utils.logging_config import configure_logging

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

app = FastAPI(
    title="Voronoi Diagram API",
    description="Fortune's sweep-line Voronoi diagrams clipped to a bounding box",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class BoundingBoxModel(BaseModel):
    """Clipping rectangle, y growing downward."""

    xl: float = Field(0.0, description="Left side")
    xr: float = Field(settings.default_width, description="Right side")
    yt: float = Field(0.0, description="Top side")
    yb: float = Field(settings.default_height, description="Bottom side")

    @model_validator(mode="after")
    def check_extent(self):
        if not self.xl < self.xr:
            raise ValueError("xl must be smaller than xr")
        if not self.yt < self.yb:
            raise ValueError("yt must be smaller than yb")
        return self


class VoronoiRequest(BaseModel):
    """Request to compute a Voronoi diagram."""

    sites: List[Tuple[float, float]] = Field(..., description="Site coordinates")
    bbox: BoundingBoxModel = Field(default_factory=BoundingBoxModel)

    @model_validator(mode="after")
    def check_size(self):
        if len(self.sites) > settings.max_sites:
            raise ValueError(f"At most {settings.max_sites} sites are accepted")
        return self


class CellResponse(BaseModel):
    site_id: int
    site: Tuple[float, float]
    polygon: List[Tuple[float, float]]
    neighbors: List[int]
    area: float


class EdgeResponse(BaseModel):
    lsite: int
    rsite: Optional[int] = None
    va: Tuple[float, float]
    vb: Tuple[float, float]


class VoronoiResponse(BaseModel):
    cells: List[CellResponse]
    edges: List[EdgeResponse]
    exec_time: float


class RelaxRequest(BaseModel):
    """Request to spread points with Lloyd's relaxation."""

    points: List[Tuple[float, float]] = Field(..., min_length=1, description="Point coordinates")
    bbox: BoundingBoxModel = Field(default_factory=BoundingBoxModel)
    iterations: Optional[int] = Field(None, ge=0, description="Relaxation passes, defaults to the configured value")


class RelaxResponse(BaseModel):
    points: List[Tuple[float, float]]
    iterations: int


class DelaunayRequest(BaseModel):
    points: List[Tuple[float, float]] = Field(..., description="Point coordinates")


class DelaunayResponse(BaseModel):
    triangles: List[Tuple[int, int, int]]


class SurfaceHeightRequest(BaseModel):
    points: List[Tuple[float, float, float]] = Field(..., min_length=1, description="Known (x, y, z) points")
    x: float
    y: float
    neighbors: int = Field(3, ge=1, description="Nearest points used for the interpolation")
    power: float = Field(2.0, gt=0, description="Distance exponent")


class SurfaceHeightResponse(BaseModel):
    x: float
    y: float
    z: float


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Voronoi Diagram API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/voronoi", response_model=VoronoiResponse)
def compute_diagram(request: VoronoiRequest):
    """Compute the Voronoi diagram of the posted sites."""
    logger.info("Voronoi diagram requested", sites=len(request.sites))
    bbox = BoundingBox(request.bbox.xl, request.bbox.xr, request.bbox.yt, request.bbox.yb)

    try:
        diagram = compute_voronoi(request.sites, bbox)
    except VoronoiError as e:
        logger.error("Voronoi computation failed", error=str(e))
        raise HTTPException(status_code=500, detail=f"Voronoi computation failed: {str(e)}")

    cells = [
        CellResponse(
            site_id=cell.site.id,
            site=cell.site.as_tuple(),
            polygon=[tuple(p) for p in cell.polygon()],
            neighbors=cell.neighbor_ids(),
            area=cell.area(),
        )
        for cell in diagram.cells
    ]
    edges = [
        EdgeResponse(
            lsite=edge.lsite.id,
            rsite=edge.rsite.id if edge.rsite is not None else None,
            va=tuple(edge.va),
            vb=tuple(edge.vb),
        )
        for edge in diagram.edges
    ]
    return VoronoiResponse(cells=cells, edges=edges, exec_time=diagram.exec_time)


@app.post("/relax", response_model=RelaxResponse)
def relax(request: RelaxRequest):
    """Move the posted points toward the centroids of their cells."""
    iterations = request.iterations if request.iterations is not None else settings.relax_iterations
    bbox = BoundingBox(request.bbox.xl, request.bbox.xr, request.bbox.yt, request.bbox.yb)

    try:
        relaxed = relax_points(np.asarray(request.points, dtype=float), bbox, n_iterations=iterations)
    except VoronoiError as e:
        logger.error("Relaxation failed", error=str(e))
        raise HTTPException(status_code=500, detail=f"Relaxation failed: {str(e)}")

    return RelaxResponse(points=[tuple(p) for p in relaxed.tolist()], iterations=iterations)


@app.post("/delaunay", response_model=DelaunayResponse)
def compute_triangulation(request: DelaunayRequest):
    """Triangulate the posted points; triangles are index triples into the request."""
    try:
        triangles = triangulate(request.points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DelaunayResponse(
        triangles=[(t.p1.index, t.p2.index, t.p3.index) for t in triangles]
    )


@app.post("/surface/height", response_model=SurfaceHeightResponse)
def surface_height(request: SurfaceHeightRequest):
    """Interpolate the height at (x, y) from the posted point cloud."""
    surface = IDWSurface(request.points, neighbors=request.neighbors, power=request.power)
    point = surface.point_at(request.x, request.y)
    return SurfaceHeightResponse(x=point.x, y=point.y, z=point.z)
