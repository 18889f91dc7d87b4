"""Error taxonomy for the ingestion pipeline."""


class IngestError(Exception):
    """Base class for ingestion errors."""


class FetchError(IngestError):
    """Raised when an adapter cannot retrieve its raw content."""

    def __init__(self, source_id: str, message: str):
        super().__init__(f"Fetch from '{source_id}' failed: {message}")
        self.source_id = source_id
        self.message = message


class ParseSkip(IngestError):
    """Raised for a single malformed item; the item is dropped, the batch continues."""


class AdapterNotFound(IngestError):
    """Raised when a source id is not registered."""

    def __init__(self, source_id: str):
        super().__init__(f"Source '{source_id}' is not registered")
        self.source_id = source_id


class StorageError(IngestError):
    """Raised when the catalog store fails to read or persist records."""


class ConfigError(IngestError):
    """Raised when a configuration file cannot be loaded."""
