"""Image upload, processing and retrieval service.

This service sits between the HTTP routes and the core components: it owns
the metadata lifecycle of uploads and processed outputs and the recovery scan
used when a record is missing from the store.
"""

import json
import logging
import mimetypes
import re
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ...config import ConfigManager
from ...files import ImageFileManager
from ...processing import ImageProcessor, ProcessingOptions
from ...storage import ImageRecord, MetadataStore, ProcessedImageRecord, StorageError
from ...storage.models import image_key, isoformat, processed_key
from .admission import MemoryGate
from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

UPLOAD_EXTENSIONS = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}

# Ids are issued as uuid4 strings. Requiring the full form keeps the recovery
# prefix scan from matching another id's file.
_ID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

STORAGE_TEST_TTL = 60


def _validate_id(value: Any, label: str = "Image ID") -> str:
    if not value or not isinstance(value, str):
        raise ValidationError(f"{label} is required")
    if not _ID_PATTERN.match(value):
        raise ValidationError(f"Invalid {label.lower()}: {value!r}")
    return value


class ImageService:
    """Service for uploading, processing and retrieving images.

    Attributes:
        config: Configuration manager
        store: Metadata store for image records
        files: On-disk image layout
        processor: Image processing orchestrator
        gate: Memory admission gate checked before processing
    """

    def __init__(
        self,
        config: ConfigManager,
        store: MetadataStore,
        files: Optional[ImageFileManager] = None,
        processor: Optional[ImageProcessor] = None,
        gate: Optional[MemoryGate] = None
    ) -> None:
        """Initialize image service.

        Args:
            config: Configuration manager
            store: Started metadata store
            files: File manager (built from config if None)
            processor: Image processor (built from config if None)
            gate: Memory gate (built from config if None)
        """
        self.config = config
        self.store = store
        self.ttl_seconds = int(config.get("storage.ttl_seconds", 86400))

        self.files = files or ImageFileManager(
            config.get("paths.uploads_dir"),
            config.get("paths.processed_dir"),
            config.get("paths.temp_dir") or None,
        )
        self.processor = processor or ImageProcessor(
            jpeg_quality=int(config.get("processing.jpeg_quality", 90)),
            vignette_radius=float(config.get("processing.vignette_radius", 0.8)),
        )
        self.gate = gate or MemoryGate(
            threshold=float(config.get("processing.memory_threshold", 0.95)),
            retry_after=int(config.get("processing.retry_after", 30)),
        )
        self.allowed_types = set(
            config.get("upload.allowed_types", ["image/jpeg", "image/png"])
        )

    def _store_record(self, key: str, record) -> None:
        """Write a record to the store. Failures are logged, not raised."""
        try:
            self.store.set(key, record.to_json(), self.ttl_seconds)
            logger.debug(f"Metadata stored for {key} using {self.store.active_backend.name}")
        except StorageError as e:
            logger.error(f"Error storing metadata for {key}: {e}")

    def _load_record(self, key: str, record_cls):
        """Read a record from the store; None on miss, failure or bad data."""
        try:
            text = self.store.get(key)
        except StorageError as e:
            logger.error(f"Error retrieving metadata for {key}: {e}")
            return None
        if text is None:
            return None
        try:
            return record_cls.from_json(text)
        except ValueError as e:
            logger.error(f"Discarding malformed metadata for {key}: {e}")
            return None

    def upload(self, data: bytes, filename: str, mime_type: Optional[str] = None) -> ImageRecord:
        """Store an uploaded image and record its metadata.

        Args:
            data: Uploaded file content
            filename: Client-supplied filename
            mime_type: Client-supplied MIME type

        Returns:
            The created ImageRecord

        Raises:
            ValidationError: If no file was sent or it is not JPEG/PNG
        """
        if not data or not filename:
            raise ValidationError("No image file provided")

        extension = Path(filename).suffix.lower()
        guessed_type = UPLOAD_EXTENSIONS.get(extension)
        if guessed_type is None or (mime_type and mime_type not in self.allowed_types):
            raise ValidationError("Only JPEG and PNG images are allowed")

        image_id = str(uuid.uuid4())
        path = self.files.upload_path(image_id, extension)
        path.write_bytes(data)

        if self.config.get("upload.strip_exif", True):
            self.files.strip_exif(path)

        record = ImageRecord.create(
            image_id,
            str(path),
            original_name=filename,
            mime_type=mime_type or guessed_type,
            size=path.stat().st_size,
            ttl_seconds=self.ttl_seconds,
        )
        self._store_record(image_key(image_id), record)

        logger.info(f"Image uploaded: {image_id} ({filename}, {record.size} bytes)")
        return record

    def get_image_record(self, image_id: str) -> ImageRecord:
        """Look up an upload, recovering from disk if its metadata is gone.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If neither metadata nor file exist
        """
        image_id = _validate_id(image_id)
        record = self._load_record(image_key(image_id), ImageRecord)
        if record is not None and Path(record.path).is_file():
            return record

        logger.info(f"Image metadata not found for {image_id}, scanning uploads")
        path = self.files.find_upload(image_id)
        if path is None:
            raise NotFoundError("Image not found")

        record = ImageRecord.create(
            image_id,
            str(path),
            original_name=path.name,
            mime_type=mimetypes.guess_type(path.name)[0] or "",
            size=path.stat().st_size,
            ttl_seconds=self.ttl_seconds,
        )
        self._store_record(image_key(image_id), record)
        return record

    def get_processed_record(self, processed_id: str) -> ProcessedImageRecord:
        """Look up a processed output, recovering from disk if needed.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If neither metadata nor file exist
        """
        processed_id = _validate_id(processed_id, "Processed image ID")
        record = self._load_record(processed_key(processed_id), ProcessedImageRecord)
        if record is not None and Path(record.path).is_file():
            return record

        logger.info(f"Processed metadata not found for {processed_id}, scanning outputs")
        path = self.files.find_processed(processed_id)
        if path is None:
            raise NotFoundError("Processed image not found")

        record = ProcessedImageRecord.create(
            processed_id,
            str(path),
            original_id="",
            film_stock="",
            ttl_seconds=self.ttl_seconds,
        )
        self._store_record(processed_key(processed_id), record)
        return record

    def process(
        self,
        data: Optional[Dict[str, Any]],
        custom_crop: bool = False
    ) -> ProcessedImageRecord:
        """Process an uploaded image.

        Every call produces a new processed record, even for repeated
        requests on the same upload.

        Args:
            data: Request body (imageId plus processing options)
            custom_crop: If True, cropData is required

        Returns:
            The created ProcessedImageRecord

        Raises:
            ValidationError: If the request is malformed
            CapacityError: If the memory gate is tripped
            NotFoundError: If the upload is unknown
            ProcessingError: If the pipeline fails
        """
        if data is not None and not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        data = data or {}
        image_id = _validate_id(data.get("imageId"))

        try:
            options = ProcessingOptions.from_request(data, require_crop=custom_crop)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        self.gate.check()
        source = self.get_image_record(image_id)
        source_path = Path(source.path)
        extension = source_path.suffix.lower()

        logger.info(f"Processing image {image_id}: {options.describe()}")

        with self.files.working_directory() as work_dir:
            input_path = work_dir / f"input{extension}"
            output_path = work_dir / f"output{extension}"
            shutil.copyfile(source_path, input_path)

            self.processor.process_file(input_path, output_path, options)

            processed_id = str(uuid.uuid4())
            final_path = self.files.processed_path(processed_id, extension)
            shutil.copyfile(output_path, final_path)

        record = ProcessedImageRecord.create(
            processed_id,
            str(final_path),
            original_id=image_id,
            film_stock=options.film_stock.value,
            aspect_ratio=options.aspect_ratio,
            crop=options.crop.to_dict() if options.crop else None,
            options={
                "addGrain": options.add_grain,
                "grainIntensity": options.grain_intensity,
                "grainSize": options.grain_size,
                "addVignette": options.add_vignette,
                "vignetteIntensity": options.vignette_intensity,
            },
            ttl_seconds=self.ttl_seconds,
        )
        self._store_record(processed_key(processed_id), record)

        logger.info(f"Processed image {processed_id} created from {image_id}")
        return record

    def storage_status(self) -> Dict[str, Any]:
        """Report which metadata backend is serving requests."""
        backend = self.store.active_backend.name
        return {
            "is_enabled_storage": "redis" if backend == "redis" else "file",
            "status": "active",
            "timestamp": isoformat(datetime.now(timezone.utc)),
        }

    def test_storage(self) -> Dict[str, Any]:
        """Round-trip a short-lived value through the metadata store.

        Raises:
            StorageError: If the store cannot be written or read
        """
        test_key = f"test:{uuid.uuid4().hex}"
        value = json.dumps({"test": True, "timestamp": isoformat(datetime.now(timezone.utc))})
        self.store.set(test_key, value, STORAGE_TEST_TTL)
        retrieved = self.store.get(test_key)
        return {
            "success": True,
            "storageType": self.store.active_backend.name,
            "testKey": test_key,
            "stored": value,
            "retrieved": retrieved,
            "match": value == retrieved,
        }

    def health(self) -> Dict[str, Any]:
        """Collect storage, memory and file statistics."""
        memory = self.gate.snapshot()
        return {
            "status": "ok",
            "timestamp": isoformat(datetime.now(timezone.utc)),
            "services": {
                "storage": self.store.status(),
                "memory": {
                    **memory,
                    "status": "ok" if memory["used_fraction"] < self.gate.threshold else "high",
                },
                "files": self.files.get_stats(),
            },
        }
