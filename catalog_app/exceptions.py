class ResolverError(Exception):
    """Base class for application-specific errors."""
    pass

class ConfigError(ResolverError):
    """Errors related to configuration loading or validation."""
    pass

class CatalogUnavailableError(ResolverError):
    """The catalog could not be reached or its response could not be decoded."""
    def __init__(self, message: str, request_path: str = ""):
        super().__init__(message)
        self.request_path = request_path

class UserAbortError(ResolverError):
    """Error raised when user cancels an operation."""
    pass
