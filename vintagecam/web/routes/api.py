"""REST API routes for vintagecam."""

import logging
import mimetypes
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file

from ..app import get_image_service

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

VIEW_CACHE_SECONDS = 3600


def _mimetype_for(path: Path) -> str:
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


@api_bp.route("/upload", methods=["POST"])
def upload_image():
    """Upload an image.

    Form data:
        image: JPEG or PNG file (max 10MB)

    Returns:
        201 with {"id", "message"}
    """
    file = request.files.get("image")
    if file is None or not file.filename:
        return jsonify({"error": "No image file provided"}), 400

    service = get_image_service(current_app)
    record = service.upload(file.read(), file.filename, file.mimetype)

    return jsonify({
        "id": record.id,
        "message": "Image uploaded successfully",
    }), 201


@api_bp.route("/upload/preview/<image_id>", methods=["GET"])
def preview_image(image_id: str):
    """Serve an uploaded original."""
    service = get_image_service(current_app)
    record = service.get_image_record(image_id)
    path = Path(record.path)
    return send_file(path, mimetype=record.mime_type or _mimetype_for(path))


def _process(custom_crop: bool):
    data = request.get_json(silent=True)
    service = get_image_service(current_app)
    record = service.process(data, custom_crop=custom_crop)
    return jsonify({
        "id": record.id,
        "message": "Image processed successfully",
    })


@api_bp.route("/process", methods=["POST"])
def process_image():
    """Process an upload with a centered aspect-ratio crop.

    Request body:
        {
            "imageId": "<upload id>",
            "aspectRatio": "1:1",
            "filmStock": "classic_chrome",
            "addGrain": false,
            "grainIntensity": 0.15,
            "grainSize": "fine",
            "addVignette": false,
            "vignetteIntensity": 0.3
        }

    Returns:
        200 with {"id", "message"}
    """
    return _process(custom_crop=False)


@api_bp.route("/process/custom", methods=["POST"])
def process_custom_crop():
    """Process an upload with an explicit crop rectangle.

    Request body:
        {
            "imageId": "<upload id>",
            "cropData": {"x": 0, "y": 0, "width": 100, "height": 100},
            "filmStock": "velvia"
        }
    """
    return _process(custom_crop=True)


@api_bp.route("/download/<processed_id>", methods=["GET"])
def download_image(processed_id: str):
    """Download a processed image as an attachment."""
    service = get_image_service(current_app)
    record = service.get_processed_record(processed_id)
    path = Path(record.path)
    return send_file(
        path,
        mimetype=_mimetype_for(path),
        as_attachment=True,
        download_name=f"vintagecam-{processed_id}{path.suffix}",
    )


@api_bp.route("/download/view/<processed_id>", methods=["GET"])
def view_image(processed_id: str):
    """Serve a processed image inline for display."""
    service = get_image_service(current_app)
    record = service.get_processed_record(processed_id)
    path = Path(record.path)
    return send_file(path, mimetype=_mimetype_for(path), max_age=VIEW_CACHE_SECONDS)


@api_bp.route("/storage-status", methods=["GET"])
def storage_status():
    """Report the active metadata backend ("redis" or "file")."""
    return jsonify(get_image_service(current_app).storage_status())


@api_bp.route("/test-storage", methods=["GET"])
def test_storage():
    """Round-trip a short-lived value through the metadata store."""
    service = get_image_service(current_app)
    try:
        return jsonify(service.test_storage())
    except Exception as e:
        logger.error(f"Storage test error: {e}", exc_info=True)
        return jsonify({
            "success": False,
            "error": str(e),
            "storageType": service.store.active_backend.name,
        }), 500
