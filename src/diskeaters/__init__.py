"""disk-eaters - find the largest directories and files and track their growth."""

__version__ = "0.1.0"
