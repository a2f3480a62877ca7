"""Domain errors raised by the engine and mapped to HTTP responses by the API."""


class InvalidArgument(ValueError):
    """A value was supplied but cannot be used (bad date, bad range, bad payload)."""


class MissingParameter(ValueError):
    """A required request parameter or field was not supplied."""
