"""bucketfs - file-backed emulation of a cloud object-storage service."""

__version__ = "0.1.0"
