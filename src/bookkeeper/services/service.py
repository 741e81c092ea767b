"""Service layer for higher-level operations."""

from bookkeeper.config.settings import Settings


class Service:
    """Base class for services."""

    def __init__(self, settings: Settings | None = None):
        """Initialize the service."""
        self.settings = settings or Settings()
