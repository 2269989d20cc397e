class WatermarkEditorError(Exception):
    """Base class for recoverable editor errors."""


class ImageSourceError(WatermarkEditorError):
    """The selected image could not be probed or decoded."""


class RemovalError(WatermarkEditorError):
    """The external removal operation failed."""


class UnknownOperationError(WatermarkEditorError):
    """No operation is registered under the requested name."""
