"""Engine exceptions."""


class ListEngineError(Exception):
    """Base exception for all pyqt_listengine errors."""


class IndexOutOfRangeError(ListEngineError, IndexError):
    """Raised when an index does not address an item of a collection."""


class InvalidArgumentError(ListEngineError, ValueError):
    """Raised for absent data, a state count below 1 or a state out of range."""


class NoSuchElementError(ListEngineError, LookupError):
    """Raised when an item or group referenced by value is not present."""


class FilteringUnsupportedError(ListEngineError, TypeError):
    """Raised when data exposes no ``match`` method and no matcher was supplied."""


class IllegalStateError(ListEngineError, RuntimeError):
    """Raised when the current choice mode forbids the requested selection."""
