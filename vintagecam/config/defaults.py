"""Default configuration values for vintagecam."""

from pathlib import Path

# Default configuration dictionary
DEFAULT_CONFIG = {
    # Metadata storage
    "storage": {
        "redis_url": "redis://localhost:6379",
        "use_redis": True,
        "connect_timeout": 5.0,
        "ttl_seconds": 86400,
        "metadata_dir": str(Path.home() / ".vintagecam" / "storage"),
    },

    # Image file locations
    "paths": {
        "uploads_dir": str(Path.home() / ".vintagecam" / "uploads"),
        "processed_dir": str(Path.home() / ".vintagecam" / "processed"),
        "temp_dir": "",  # System temp directory when empty
    },

    # Upload limits
    "upload": {
        "max_size_mb": 10,
        "allowed_types": ["image/jpeg", "image/png"],
        "strip_exif": True,
    },

    # Processing Configuration
    "processing": {
        "jpeg_quality": 90,
        "vignette_radius": 0.8,
        "memory_threshold": 0.95,
        "retry_after": 30,
    },

    # Web server
    "server": {
        "host": "127.0.0.1",
        "port": 5000,
    },

    # Logging Configuration
    "logging": {
        "level": "INFO",
        "file": "",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

# Required configuration fields (must be non-empty after merging)
REQUIRED_FIELDS = [
    "storage.metadata_dir",
    "paths.uploads_dir",
    "paths.processed_dir",
]

# Environment variables that override configuration values
ENV_OVERRIDES = {
    "REDIS_URL": "storage.redis_url",
    "PORT": "server.port",
}
