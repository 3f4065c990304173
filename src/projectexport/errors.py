"""
Exception hierarchy for projectexport.
"""


class ExportError(Exception):
    """Base exception for projectexport errors."""


class InvalidRootError(ExportError):
    """Raised when the provided root directory is missing or not a directory."""


class ConfigFileError(ExportError):
    """Raised when there are issues with config files."""


class OutputError(ExportError):
    """Raised when the export document cannot be saved or copied."""


class NoDocumentError(ExportError):
    """Raised when quick export has no readable document to work on."""


class FileReadError(ExportError):
    """Raised when there are issues reading source files."""
