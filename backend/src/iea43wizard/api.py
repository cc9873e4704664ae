"""FastAPI application for the IEA Task 43 station-configuration wizard."""

import io
import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError
from starlette.middleware.cors import CORSMiddleware

from .config import get_settings
from .export import ExportBlockedError, check_export, export_document, export_statistics
from .importers.logger_csv import LoggerCSVImporter
from .points import GROUP_BY_OPTIONS, bulk_edit_points, filter_points, new_point, remove_point
from .store import store
from .templates import default_template, generate_template, render_csv

_logger = logging.getLogger("iea43wizard.api")

TEMPLATE_FILENAME = "iea-task43-template.csv"

# Create FastAPI app
app = FastAPI(
    title="IEA Task 43 Wizard API",
    description="API for importing logger files and exporting IEA Task 43 station configurations",
    version="0.1.0"
)

# CORS: opt-in via env
_cors = get_settings().cors_origins.strip()
origins = [o.strip() for o in _cors.split(",") if o.strip()]
if origins or _cors == "*":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if _cors == "*" else origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class BulkEditRequest(BaseModel):
    indexes: List[int]
    updates: Dict[str, Any]


def _require_document(doc_id: str) -> Dict[str, Any]:
    doc = store.get(doc_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"Document {doc_id} not found")
    return doc


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    limit = get_settings().max_upload_bytes
    if len(content) > limit:
        raise HTTPException(
            status_code=413,
            detail={"code": "file_too_large", "message": f"File exceeds {limit} bytes"}
        )
    return content


def _validation_response(doc: Any) -> Dict[str, Any]:
    try:
        check = check_export(doc)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})
    response = check.summary()
    response["statistics"] = export_statistics(check.cleaning.cleaned)
    return response


def _export_response(doc: Any, filename: Optional[str]) -> Response:
    try:
        text = export_document(doc)
    except ExportBlockedError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": "export_blocked", "message": str(e), "details": e.check.summary()}
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})

    filename = filename or get_settings().export_filename
    return Response(
        content=text.encode("utf-8"),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@app.get("/health")
async def health_check() -> Dict[str, bool]:
    """Health check endpoint."""
    return {"ok": True}


@app.get("/config")
async def get_config() -> Dict[str, Any]:
    """Get effective application configuration."""
    settings = get_settings()
    return {
        "schema_path": str(settings.schema_path),
        "group_by": settings.group_by,
        "height_reference_id": settings.height_reference_id,
        "export_filename": settings.export_filename,
        "max_upload_bytes": settings.max_upload_bytes,
    }


@app.get("/documents")
async def list_documents() -> Dict[str, List[str]]:
    return {"documents": store.ids()}


@app.put("/documents/{doc_id}")
async def put_document(doc_id: str, doc: Any = Body(...)) -> Dict[str, Any]:
    """Create or replace a document."""
    try:
        created = store.put(doc_id, doc)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})
    return {"status": "created" if created else "replaced", "doc_id": doc_id}


@app.get("/documents/{doc_id}")
async def get_document(doc_id: str) -> Dict[str, Any]:
    return _require_document(doc_id)


@app.delete("/documents/{doc_id}", status_code=204)
async def delete_document(doc_id: str) -> Response:
    if not store.delete(doc_id):
        raise HTTPException(status_code=404, detail=f"Document {doc_id} not found")
    return Response(status_code=204)


@app.post("/import/inspect")
async def inspect_logger_csv(file: UploadFile = File(..., description="Logger data CSV file")) -> Dict[str, Any]:
    """
    Check a logger CSV file without importing it.

    Returns:
        Structural validation result and the inferred metadata of each data column
    """
    content = await _read_upload(file)
    return LoggerCSVImporter.inspect(io.BytesIO(content))


@app.post("/import/logger-csv")
async def import_logger_csv(
    doc_id: str = Query(..., description="Document to import into"),
    location_index: int = Query(0, description="Index into measurement_location"),
    logger_id: str = Query(..., description="Logger ID or serial number"),
    group_by: Optional[str] = Query(None, description="'column' or 'height_type'"),
    file: UploadFile = File(..., description="Logger data CSV file")
) -> Dict[str, Any]:
    """
    Import a logger CSV file as measurement points.

    Previously imported points of the same logger are replaced.

    Returns:
        Dictionary with counts, warnings and the imported points
    """
    _require_document(doc_id)
    settings = get_settings()
    group_by = group_by or settings.group_by
    if group_by not in GROUP_BY_OPTIONS:
        raise HTTPException(
            status_code=400,
            detail={"code": "bad_input", "message": f"Unknown group_by '{group_by}'"}
        )

    content = await _read_upload(file)
    date_from, date_to = store.campaign_dates(doc_id)

    try:
        result = LoggerCSVImporter.import_file(
            io.BytesIO(content),
            logger_id,
            group_by=group_by,
            date_from=date_from,
            date_to=date_to,
            height_reference_id=settings.height_reference_id,
        )
        if not result.ok:
            raise HTTPException(
                status_code=400,
                detail={
                    "code": "bad_csv",
                    "message": result.errors[0].message if result.errors else "Import failed",
                    "details": {"issues": [issue.model_dump() for issue in result.issues]}
                }
            )
        counts, warnings = store.import_logger_points(doc_id, location_index, logger_id, result.points)
    except HTTPException:
        raise
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})

    return {
        "status": "success",
        "doc_id": doc_id,
        "counts": counts,
        "warnings": [issue.message for issue in result.warnings] + warnings,
        "points": [point.model_dump() for point in result.points],
    }


@app.get("/documents/{doc_id}/locations/{location_index}/points")
async def find_points(
    doc_id: str,
    location_index: int,
    name: str = "",
    measurement_type: str = "",
    height: str = "",
    height_reference: str = "",
    notes: str = "",
) -> Dict[str, Any]:
    """Measurement points of a location matching the given filters."""
    _require_document(doc_id)
    try:
        points = store.location_points(doc_id, location_index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})
    indexes = filter_points(
        points,
        name=name,
        measurement_type=measurement_type,
        height=height,
        height_reference=height_reference,
        notes=notes,
    )
    return {"indexes": indexes, "points": [points[i] for i in indexes]}


@app.post("/documents/{doc_id}/locations/{location_index}/points", status_code=201)
async def add_point(
    doc_id: str,
    location_index: int,
    logger_id: str = Query(..., description="Logger ID or serial number")
) -> Dict[str, Any]:
    """Append a blank measurement point attached to a logger."""
    _require_document(doc_id)
    date_from, date_to = store.campaign_dates(doc_id)
    point = new_point(logger_id, date_from=date_from, date_to=date_to).model_dump()
    try:
        points = store.location_points(doc_id, location_index) + [point]
        store.set_location_points(doc_id, location_index, points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})
    return {"status": "success", "index": len(points) - 1, "point": point}


@app.post("/documents/{doc_id}/locations/{location_index}/points/bulk-edit")
async def bulk_edit(doc_id: str, location_index: int, request: BulkEditRequest) -> Dict[str, Any]:
    """Apply the same updates to several measurement points."""
    _require_document(doc_id)
    try:
        points = bulk_edit_points(store.location_points(doc_id, location_index), request.indexes, request.updates)
        store.set_location_points(doc_id, location_index, points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})
    return {"status": "success", "updated": len(request.indexes)}


@app.delete("/documents/{doc_id}/locations/{location_index}/points/{point_index}")
async def delete_point(doc_id: str, location_index: int, point_index: int) -> Dict[str, Any]:
    _require_document(doc_id)
    try:
        points = remove_point(store.location_points(doc_id, location_index), point_index)
        store.set_location_points(doc_id, location_index, points)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})
    return {"status": "success", "points_total": len(points)}


@app.post("/validate")
async def validate_document(doc: Any = Body(...)) -> Dict[str, Any]:
    """Run both validators on a cleaned copy of the posted document."""
    return _validation_response(doc)


@app.get("/documents/{doc_id}/validate")
async def validate_stored_document(doc_id: str) -> Dict[str, Any]:
    return _validation_response(_require_document(doc_id))


@app.get("/documents/{doc_id}/statistics")
async def document_statistics(doc_id: str) -> Dict[str, Any]:
    return export_statistics(_require_document(doc_id))


@app.post("/export")
async def export_posted_document(
    doc: Any = Body(...),
    filename: Optional[str] = Query(None, description="Download file name")
) -> Response:
    """
    Export a document as IEA Task 43 JSON.

    Returns:
        The cleaned document as a JSON attachment, or 422 with both
        validation results when the export is blocked
    """
    return _export_response(doc, filename)


@app.get("/documents/{doc_id}/export")
async def export_stored_document(
    doc_id: str,
    filename: Optional[str] = Query(None, description="Download file name")
) -> Response:
    return _export_response(_require_document(doc_id), filename)


@app.get("/template.csv")
async def get_csv_template(
    measurement_types: Optional[str] = Query(None, description="Comma-separated measurement types"),
    heights: str = Query("", description="Comma-separated heights in meters"),
    statistics: str = Query("avg", description="Comma-separated statistic types"),
    instructions: bool = Query(False, description="Prepend instruction comments"),
) -> Response:
    """Download a logger CSV template."""
    try:
        if measurement_types is None:
            template = default_template()
        else:
            types = [t.strip() for t in measurement_types.split(",") if t.strip()]
            height_values = [float(h) for h in heights.split(",") if h.strip()] or [0]
            stats = [s.strip() for s in statistics.split(",") if s.strip()]
            template = generate_template([(t, height_values, stats) for t in types])
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "bad_input", "message": str(e)})

    headers = {"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'}
    if template.skipped:
        headers["X-Template-Skipped"] = ",".join(template.skipped)
    return Response(
        content=render_csv(template, include_instructions=instructions),
        media_type="text/csv",
        headers=headers
    )


@app.exception_handler(HTTPException)
async def _http_exception_handler(request: Request, exc: HTTPException):
    """Preserve HTTPException status codes and return a unified JSON shape."""
    status = exc.status_code
    detail = exc.detail

    if isinstance(detail, dict):
        message = detail.get("message") or str(detail)
        details = {k: v for k, v in detail.items() if k not in ("message", "details")}
        if isinstance(detail.get("details"), dict):
            details.update(detail["details"])
    else:
        message = str(detail)
        details = None

    return JSONResponse(
        status_code=status,
        content={
            "error": {
                "code": status,
                "type": "http_error",
                "message": message,
                "details": details,
            }
        },
    )


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    _logger.exception("Unhandled server error")
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": 500,
                "type": "internal_error",
                "message": str(exc),
                "details": None,
            }
        },
    )


def main():
    """Serve the API with uvicorn."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Run the IEA Task 43 wizard API")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
