"""Exception hierarchy for flpipeline."""


class FlpipelineError(Exception):
    """Base exception for all flpipeline errors."""


class ConfigError(FlpipelineError):
    """Raised when configuration is missing or invalid (unknown provider, no API key)."""


class StorageError(FlpipelineError):
    """Raised on persistence failures (corrupt store file, disk I/O, constraint violations)."""


class DocumentNotFoundError(StorageError):
    """Raised when a write references a document id that does not exist."""


class ProviderError(FlpipelineError):
    """Raised when an embedding or LLM provider call fails. Never retried internally."""


class SelectionParseError(FlpipelineError):
    """Raised when an LLM hint-selection response is not a JSON array of names."""


class HintNotFoundError(FlpipelineError):
    """Raised when the content of a selected hint cannot be read."""


class DocNotFoundError(FlpipelineError):
    """Raised when a documentation file cannot be resolved by name."""


class TierUnavailableError(FlpipelineError):
    """Raised by a search tier that cannot answer; the next tier is tried."""
