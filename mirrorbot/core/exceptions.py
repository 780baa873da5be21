"""
Exception hierarchy for the mirroring engine.

Configuration errors are fatal and only raised during startup. Platform errors
are recoverable: the engine logs them and skips the affected target.
"""


class MirrorError(Exception):
    """Base class for every error raised by the mirror."""


class ConfigurationError(MirrorError):
    """Settings or routing configuration is missing or malformed."""


class RoutingConfigError(ConfigurationError):
    """The routing configuration file is absent or not a list of id arrays."""


class PlatformError(MirrorError):
    """A call to the chat platform failed."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ChannelResolutionError(PlatformError):
    """A target channel could not be fetched or cannot host webhooks."""


class EndpointResolutionError(PlatformError):
    """A cached webhook id no longer resolves."""


class EndpointCreationError(PlatformError):
    """The platform rejected the creation of a webhook."""
