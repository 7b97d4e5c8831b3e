"""Exceptions raised by disk-eaters."""


class DiskEatersError(Exception):
    """Base class for all disk-eaters errors."""


class ScanError(DiskEatersError):
    """The scan root could not be walked at all."""


class SnapshotError(DiskEatersError):
    """A snapshot file could not be read or written."""


class ProcessLocatorError(DiskEatersError):
    """Processes holding a file could not be determined."""


class UnsupportedPlatformError(ProcessLocatorError):
    """No process lookup mechanism works on this platform."""


class ReportError(DiskEatersError):
    """The report could not be set up (log directories, report file)."""
