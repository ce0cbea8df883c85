"""Error types raised across the destination explorer pipeline."""


class ExplorerError(RuntimeError):
    """Base class for all pipeline errors."""


class ValidationError(ExplorerError):
    """Raised when a build request is missing required fields."""


class ProviderError(ExplorerError):
    """Raised when an external provider reports a non-successful response."""


class PersistenceError(ExplorerError):
    """Raised when a single row write to the store fails."""


class BuildError(ExplorerError):
    """Generic failure surfaced when a build request cannot be completed."""
