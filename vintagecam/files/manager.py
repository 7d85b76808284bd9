"""File manager for uploaded and processed images on local disk."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from PIL import Image

logger = logging.getLogger(__name__)


class ImageFileManager:
    """Manages the on-disk layout of uploaded and processed images.

    Uploads live at ``<uploads_dir>/<id><ext>`` and outputs at
    ``<processed_dir>/<id><ext>``. Files are never removed when their
    metadata expires.

    Attributes:
        uploads_dir: Directory for uploaded originals
        processed_dir: Directory for processed outputs
        temp_dir: Parent directory for per-request working directories
    """

    def __init__(
        self,
        uploads_dir: Union[str, Path],
        processed_dir: Union[str, Path],
        temp_dir: Optional[Union[str, Path]] = None
    ) -> None:
        """Initialize file manager.

        Args:
            uploads_dir: Directory for uploaded originals
            processed_dir: Directory for processed outputs
            temp_dir: Parent for working directories (system temp if None)
        """
        self.uploads_dir = Path(uploads_dir).expanduser()
        self.processed_dir = Path(processed_dir).expanduser()
        self.temp_dir = Path(temp_dir).expanduser() if temp_dir else None

        for directory in (self.uploads_dir, self.processed_dir, self.temp_dir):
            if directory is not None:
                directory.mkdir(parents=True, exist_ok=True)

        logger.info(
            f"Image file manager initialized: uploads={self.uploads_dir}, "
            f"processed={self.processed_dir}"
        )

    def upload_path(self, image_id: str, extension: str) -> Path:
        """Get the path where an upload is stored."""
        return self.uploads_dir / f"{image_id}{extension.lower()}"

    def processed_path(self, processed_id: str, extension: str) -> Path:
        """Get the path where a processed output is stored."""
        return self.processed_dir / f"{processed_id}{extension.lower()}"

    @staticmethod
    def find_by_prefix(directory: Union[str, Path], file_id: str) -> Optional[Path]:
        """Find the first file in ``directory`` whose name starts with ``file_id``.

        This is a linear scan of the directory, used only to recover from a
        metadata miss.

        Args:
            directory: Directory to scan
            file_id: Identifier prefix

        Returns:
            Path of the first match in sorted order, or None
        """
        directory = Path(directory)
        if not file_id or not directory.is_dir():
            return None

        matches = sorted(
            item for item in directory.iterdir()
            if item.is_file() and item.name.startswith(file_id)
        )
        if not matches:
            return None

        logger.debug(f"Found {matches[0].name} by prefix scan in {directory}")
        return matches[0]

    def find_upload(self, image_id: str) -> Optional[Path]:
        return self.find_by_prefix(self.uploads_dir, image_id)

    def find_processed(self, processed_id: str) -> Optional[Path]:
        return self.find_by_prefix(self.processed_dir, processed_id)

    @contextmanager
    def working_directory(self) -> Iterator[Path]:
        """Create a private working directory, removed on exit.

        A failure to remove the directory is logged, never raised.

        Yields:
            Path to the working directory
        """
        work_dir = Path(tempfile.mkdtemp(
            prefix="vintagecam-",
            dir=str(self.temp_dir) if self.temp_dir else None
        ))
        try:
            yield work_dir
        finally:
            try:
                shutil.rmtree(work_dir)
            except OSError as e:
                logger.warning(f"Failed to remove working directory {work_dir}: {e}")

    def strip_exif(self, path: Union[str, Path]) -> bool:
        """Remove EXIF metadata from an image file in place.

        The ICC color profile is kept. Failures are logged and the file is
        left as it was.

        Args:
            path: Image file to rewrite

        Returns:
            True if the file was rewritten
        """
        path = Path(path)
        try:
            with Image.open(path) as img:
                img.load()
                fmt = img.format
                icc_profile = img.info.get("icc_profile")
                has_exif = "exif" in img.info or bool(img.getexif())
                if not has_exif:
                    return False

                clean = img.copy()
                clean.info.pop("exif", None)

            save_kwargs = {}
            if icc_profile:
                save_kwargs["icc_profile"] = icc_profile
            if fmt == "JPEG":
                save_kwargs["quality"] = 95

            tmp_path = path.with_name(f".{path.name}.tmp")
            clean.save(tmp_path, format=fmt, **save_kwargs)
            tmp_path.replace(path)
            logger.debug(f"EXIF metadata stripped from {path}")
            return True
        except Exception as e:
            logger.error(f"Error stripping EXIF metadata from {path}: {e}")
            return False

    def get_stats(self) -> dict:
        """Get statistics about stored images.

        Returns:
            Dictionary with file counts and sizes
        """
        stats = {}
        for label, directory in (
            ("uploads", self.uploads_dir),
            ("processed", self.processed_dir)
        ):
            total_size = 0
            file_count = 0
            if directory.exists():
                for item in directory.iterdir():
                    if item.is_file():
                        total_size += item.stat().st_size
                        file_count += 1
            stats[label] = {
                "file_count": file_count,
                "total_size_mb": round(total_size / (1024 * 1024), 2),
            }
        return stats
