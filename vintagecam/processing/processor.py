"""Main image processing orchestrator."""

import io
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image, UnidentifiedImageError

from vintagecam.film.profiles import get_profile
from vintagecam.processing.color import ColorPipeline
from vintagecam.processing.crop import resolve_crop
from vintagecam.processing.effects import add_film_grain, add_vignette
from vintagecam.processing.exceptions import DecodeError, EncodeError
from vintagecam.processing.options import ProcessingOptions

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".tif": "TIFF",
    ".tiff": "TIFF",
}

BATCH_EXTENSIONS = frozenset(OUTPUT_FORMATS)


@dataclass
class ProcessingResult:
    """Result of processing a single file in batch mode.

    Attributes:
        filename: Source filename
        success: Whether processing succeeded
        output_path: Written output path (on success)
        processing_time: Time taken to process (seconds)
        error: Error message if failed
    """
    filename: str
    success: bool
    output_path: Optional[Path] = None
    processing_time: float = 0.0
    error: Optional[str] = None


@dataclass
class BatchProcessingStats:
    """Statistics for batch processing.

    Attributes:
        total_images: Number of candidate images found
        processed: Number successfully processed
        errors: Number that failed
        total_time: Total processing time (seconds)
        results: Individual processing results
    """
    total_images: int
    processed: int = 0
    errors: int = 0
    total_time: float = 0.0
    results: List[ProcessingResult] = field(default_factory=list)


def output_format_for(extension: str) -> str:
    """Map a file extension to a Pillow output format.

    Args:
        extension: Extension with or without the leading dot

    Returns:
        Pillow format name

    Raises:
        EncodeError: If the extension is not a supported output format
    """
    ext = extension.lower()
    if not ext.startswith("."):
        ext = f".{ext}"
    fmt = OUTPUT_FORMATS.get(ext)
    if fmt is None:
        raise EncodeError(f"Unsupported output format: {extension!r}")
    return fmt


class ImageProcessor:
    """Orchestrates the vintage film transformation.

    A processing call runs crop -> color pipeline -> optional grain ->
    optional vignette -> encode. The processor keeps no per-request state, so
    a single instance can serve every request.

    Attributes:
        jpeg_quality: Quality used when encoding JPEG output
        vignette_radius: Radius fraction used for the vignette
    """

    def __init__(self, jpeg_quality: int = 90, vignette_radius: float = 0.8) -> None:
        """Initialize image processor.

        Args:
            jpeg_quality: JPEG encoder quality (1-95)
            vignette_radius: Fraction of the half-diagonal used by the vignette
        """
        self.jpeg_quality = jpeg_quality
        self.vignette_radius = vignette_radius
        logger.debug(
            f"ImageProcessor initialized: jpeg_quality={jpeg_quality}, "
            f"vignette_radius={vignette_radius}"
        )

    def decode(self, source: bytes) -> Image.Image:
        """Decode source bytes into a fully loaded Pillow image.

        Raises:
            DecodeError: If the bytes are not a valid raster image
        """
        if not source:
            raise DecodeError("Source image is empty")
        try:
            image = Image.open(io.BytesIO(source))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(f"Source is not a valid image: {e}") from e
        if getattr(image, "n_frames", 1) > 1:
            image.seek(0)
        return image

    def transform(self, image: Image.Image, options: ProcessingOptions) -> Image.Image:
        """Run crop, color pipeline and the requested effects.

        Args:
            image: Decoded source image
            options: Processing options

        Returns:
            Transformed image

        Raises:
            InvalidCropError: If the crop cannot be resolved
        """
        width, height = image.size
        region = resolve_crop(width, height, options.aspect_ratio, options.crop)
        logger.debug(f"Resolved crop {region} from {width}x{height}")

        cropped = image.crop(region.as_box())
        profile = get_profile(options.film_stock)
        processed = ColorPipeline(profile).apply(cropped)

        if options.add_grain:
            processed = add_film_grain(
                processed,
                intensity=options.grain_intensity,
                size=options.grain_size
            )

        if options.add_vignette:
            processed = add_vignette(
                processed,
                intensity=options.vignette_intensity,
                radius=self.vignette_radius
            )

        return processed

    def encode(self, image: Image.Image, extension: str) -> bytes:
        """Encode an image to the format named by ``extension``.

        Raises:
            EncodeError: If the format is unsupported or the encoder fails
        """
        fmt = output_format_for(extension)
        if fmt == "JPEG" and image.mode != "RGB":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        try:
            if fmt == "JPEG":
                image.save(buffer, format=fmt, quality=self.jpeg_quality)
            else:
                image.save(buffer, format=fmt)
        except Exception as e:
            raise EncodeError(f"Failed to encode {fmt} output: {e}") from e
        return buffer.getvalue()

    def process(
        self,
        source: bytes,
        options: ProcessingOptions,
        extension: str
    ) -> bytes:
        """Process source image bytes and return the encoded result.

        Args:
            source: Encoded source image
            options: Processing options
            extension: Output file extension; selects JPEG or PNG etc.

        Returns:
            Encoded output bytes

        Raises:
            DecodeError: If the source is not a valid raster image
            InvalidCropError: If the crop is unusable
            EncodeError: If encoding fails
        """
        output_format_for(extension)
        image = self.decode(source)
        processed = self.transform(image, options)
        data = self.encode(processed, extension)

        logger.info(
            f"Vintage image processed: film_stock={options.film_stock.value}, "
            f"grain={'on' if options.add_grain else 'off'}, "
            f"vignette={'on' if options.add_vignette else 'off'}, "
            f"size={processed.size[0]}x{processed.size[1]}"
        )
        return data

    def process_file(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        options: ProcessingOptions
    ) -> Path:
        """Process an image file into ``output_path``.

        The output file is written only after the whole pipeline succeeded.

        Args:
            input_path: Source image path
            output_path: Destination path; its extension picks the format
            options: Processing options

        Returns:
            Path to the written output

        Raises:
            DecodeError: If the input is missing or undecodable
            InvalidCropError: If the crop is unusable
            EncodeError: If encoding or writing fails
        """
        input_path = Path(input_path)
        output_path = Path(output_path)

        if not input_path.is_file():
            raise DecodeError(f"Input file not found: {input_path}")

        data = self.process(input_path.read_bytes(), options, output_path.suffix)

        tmp_path = output_path.with_name(f".{output_path.name}.tmp")
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, output_path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise EncodeError(f"Failed to write output {output_path}: {e}") from e

        return output_path

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        options: ProcessingOptions
    ) -> BatchProcessingStats:
        """Process every supported image in a directory.

        Outputs are written as ``vintage_<name>`` into ``output_dir``. A failure
        on one file is logged and counted; the batch continues.

        Args:
            input_dir: Directory of source images
            output_dir: Destination directory (created if missing)
            options: Processing options applied to every file

        Returns:
            BatchProcessingStats with results
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        files = sorted(
            p for p in input_dir.iterdir()
            if p.is_file() and p.suffix.lower() in BATCH_EXTENSIONS
        )
        stats = BatchProcessingStats(total_images=len(files))

        if not files:
            logger.warning(f"No images to process in {input_dir}")
            return stats

        start_time = time.time()
        logger.info(f"Processing {len(files)} image(s) from {input_dir}")

        for i, path in enumerate(files, 1):
            logger.info(f"[{i}/{len(files)}] Processing: {path.name}")
            file_start = time.time()
            result = ProcessingResult(filename=path.name, success=False)
            try:
                result.output_path = self.process_file(
                    path, output_dir / f"vintage_{path.name}", options
                )
                result.success = True
                stats.processed += 1
            except Exception as e:
                logger.error(f"Failed to process {path.name}: {e}")
                result.error = str(e)
                stats.errors += 1
            result.processing_time = time.time() - file_start
            stats.results.append(result)

        stats.total_time = time.time() - start_time
        logger.info(
            f"Batch processing complete: {stats.processed} processed, "
            f"{stats.errors} errors (Total time: {stats.total_time:.1f}s)"
        )
        return stats
