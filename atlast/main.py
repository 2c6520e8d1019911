"""atlast microservice -- FastAPI application.

Endpoints:
    POST /decompose           -- Split an uploaded atlas into glyph PNGs + metadata
    POST /decompose/manifest  -- Split an uploaded atlas, return only its index.html
    POST /compose             -- Pack glyph PNGs + metadata into an atlas PNG
    GET  /health              -- Health check
"""

from __future__ import annotations

import base64
import binascii

import structlog
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel, Field

from . import __version__
from .decoder import Atlas, decode_image
from .encoder import LoadedGlyph, compose
from .manifest import ManifestEntry
from .storage import decode_rgba, encode_png

structlog.configure(
    processors=[
        structlog.dev.ConsoleRenderer(),
    ],
)

logger = structlog.get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ACCEPTED_CONTENT_TYPES = (
    "image/png",
    "image/x-tga",
    "image/x-targa",
    "image/bmp",
    "image/webp",
    "application/octet-stream",
)

app = FastAPI(
    title="atlast",
    description="Unpack framed glyph atlases into glyph images and pack them back",
    version=__version__,
)


# --------------------------------------------------------------------------
# Request / Response models
# --------------------------------------------------------------------------


class GlyphOut(BaseModel):
    """One decoded glyph."""

    identifier: str = Field(description="Sequential glyph identifier", examples=["000"])
    descent: int = Field(ge=0, description="Baseline offset above the bottom frame row")
    width: int
    height: int
    png_base64: str = Field(description="Base64-encoded PNG of the glyph pixels")


class DecomposeResponse(BaseModel):
    """Response body for /decompose."""

    glyph_count: int
    row_count: int
    rows: list[list[GlyphOut]]


class GlyphIn(BaseModel):
    """One glyph to pack."""

    identifier: str = Field(..., min_length=1, examples=["000"])
    descent: int = Field(default=0, ge=0)
    png_base64: str = Field(..., description="Base64-encoded glyph image")


class ComposeRequest(BaseModel):
    """Request body for /compose."""

    rows: list[list[GlyphIn]]
    width: int = Field(default=0, ge=0, description="Atlas width, 0 to fit the glyphs")
    height: int = Field(default=0, ge=0, description="Atlas height, 0 to fit the glyphs")


class HealthResponse(BaseModel):
    """Response body for /health."""

    status: str
    service: str
    version: str


# --------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------


async def _read_atlas(file: UploadFile) -> Atlas:
    if file.content_type and file.content_type not in ACCEPTED_CONTENT_TYPES:
        raise HTTPException(
            status_code=422,
            detail=f"Unsupported image type: {file.content_type}. Use PNG, TGA, BMP, or WebP.",
        )

    image_bytes = await file.read()
    if len(image_bytes) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Image too large (max 10MB)")

    result = decode_image(image_bytes)
    if result.atlas is None:
        raise HTTPException(status_code=422, detail=result.error)
    return result.atlas


def _load_glyph(glyph: GlyphIn) -> LoadedGlyph:
    try:
        image_bytes = base64.b64decode(glyph.png_base64, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Glyph {glyph.identifier}: invalid base64: {e}") from e
    try:
        image = decode_rgba(image_bytes)
    except ValueError as e:
        raise ValueError(f"Glyph {glyph.identifier}: {e}") from e
    return LoadedGlyph(entry=ManifestEntry(glyph.identifier, glyph.descent), image=image)


# --------------------------------------------------------------------------
# Endpoints
# --------------------------------------------------------------------------


@app.post("/decompose", response_model=DecomposeResponse)
async def decompose_endpoint(file: UploadFile = File(...)) -> DecomposeResponse:
    """Split an atlas into its glyphs."""
    atlas = await _read_atlas(file)

    exported = iter(atlas.export())
    rows: list[list[GlyphOut]] = []
    for row in atlas.rows:
        out_row = []
        for glyph in row:
            entry, image = next(exported)
            out_row.append(
                GlyphOut(
                    identifier=entry.identifier,
                    descent=entry.descent,
                    width=glyph.width,
                    height=glyph.height,
                    png_base64=base64.b64encode(encode_png(image)).decode("ascii"),
                )
            )
        rows.append(out_row)

    return DecomposeResponse(glyph_count=len(atlas), row_count=atlas.row_count, rows=rows)


@app.post("/decompose/manifest", response_class=HTMLResponse)
async def decompose_manifest_endpoint(file: UploadFile = File(...)) -> HTMLResponse:
    """Return the index.html manifest describing an atlas."""
    atlas = await _read_atlas(file)
    return HTMLResponse(content=atlas.to_manifest().to_html())


@app.post(
    "/compose",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "PNG-encoded atlas"},
        422: {"description": "Invalid input"},
    },
)
async def compose_endpoint(request: ComposeRequest) -> Response:
    """Pack glyph images into an atlas PNG."""
    try:
        rows = [[_load_glyph(glyph) for glyph in row] for row in request.rows]
        atlas = compose(rows, (request.width, request.height))
        png_bytes = encode_png(atlas)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error("compose_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Composing failed")

    return Response(content=png_bytes, media_type="image/png")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for Docker and load balancer probes."""
    return HealthResponse(
        status="healthy",
        service="atlast",
        version=__version__,
    )
