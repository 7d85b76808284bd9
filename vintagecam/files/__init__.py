"""Local file layout for uploaded and processed images."""

from vintagecam.files.manager import ImageFileManager

__all__ = ["ImageFileManager"]
