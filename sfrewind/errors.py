class SfrewindError(Exception):
    """Base exception for sfrewind errors."""


class ManifestError(SfrewindError):
    """The backup manifest could not be read or is malformed."""


class ManifestNotFoundError(ManifestError):
    """The backup directory has no manifest file."""


class ExportError(SfrewindError):
    """Any failure while writing the engine export for a rollback plan."""
