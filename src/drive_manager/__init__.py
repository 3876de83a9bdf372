"""Drive Manager - browse, upload, download and trash Google Drive files."""

__version__ = "0.1.0"
