# Overview: Small helpers shared by API route modules (paging args, file downloads, uploads).

from flask import Response, request, jsonify

from ..services import export_service, storage_service
from ..services.export_service import ExportFormatError
from ..services.storage_service import StorageError
from stockroom.time_utils import utcnow


def page_args(default_limit: int = 100, max_limit: int = 500) -> tuple[int, int]:
    """limit/offset query args, clamped."""
    limit = request.args.get("limit", default_limit, type=int)
    offset = request.args.get("offset", 0, type=int)

    if limit < 1:
        limit = 1
    if limit > max_limit:
        limit = max_limit
    if offset < 0:
        offset = 0
    return limit, offset


def bool_arg(name: str) -> bool:
    return (request.args.get(name) or "").lower() in {"1", "true", "yes"}


def export_response(basename: str, columns: list[str], rows: list[dict], sheet_title: str):
    """Render rows as ?format=csv (default) or ?format=xlsx and return a download."""
    fmt = request.args.get("format", "csv")
    try:
        body, mimetype = export_service.render(fmt, columns, rows, sheet_title=sheet_title)
    except ExportFormatError as e:
        return jsonify({"error": str(e)}), 400

    filename = f"{basename}-{utcnow().strftime('%Y%m%d')}.{fmt.lower()}"
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def upload_from_request(bucket: str, owner) -> str:
    """Save request.files['file'] into `bucket`; raises StorageError."""
    return storage_service.save_upload(bucket, owner, request.files.get("file"))


__all__ = ["page_args", "bool_arg", "export_response", "upload_from_request", "StorageError"]
