"""Exception hierarchy shared by the domain and infrastructure layers."""


class ObstacleError(Exception):
    """Base class for every error raised by this package."""


class ObstacleValidationError(ObstacleError):
    """A required text field was empty; nothing was changed."""


class ObstacleLoadError(ObstacleError):
    """The persisted collection could not be read; the registry is empty."""


class ObstaclePersistError(ObstacleError):
    """A mutation could not be persisted and was rolled back."""


class StorageReadError(ObstacleError):
    pass


class StorageWriteError(ObstacleError):
    pass


class ProviderError(ObstacleError):
    """Non-fatal outcome of a location or image provider."""


class PermissionDeniedError(ProviderError):
    pass


class CaptureCancelledError(ProviderError):
    pass


class AcquisitionError(ProviderError):
    """The device could not produce a value (no radio, timeout, bad file)."""
