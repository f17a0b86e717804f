"""Move files between HTTP sources and S3-compatible object storage."""

__version__ = "1.0.0"
