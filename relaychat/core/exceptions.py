"""Custom exceptions for the broadcast channel."""


class ChannelError(Exception):
    """Base exception for channel-related errors."""
    pass


class FrameError(ChannelError):
    """Exception raised when a wire frame cannot be decoded."""
    pass


class TransportError(ChannelError):
    """Exception raised when the event stream fails or closes unexpectedly."""
    pass


class DeliveryError(ChannelError):
    """Exception raised when a one-shot send request fails."""
    pass


class RegistryWriteError(ChannelError):
    """Exception raised when writing to a registered sink fails."""
    pass
