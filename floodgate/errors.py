class FloodgateError(Exception):
    """Base class for errors raised by the rate limiting engine."""


class InvalidArgumentError(FloodgateError, ValueError):
    """A keyed operation was called with an empty or missing key."""


class ConfigurationError(FloodgateError, ValueError):
    """A monitor parameter is outside its valid range."""

    def __init__(self, parameter: str, value) -> None:
        self.parameter = parameter
        self.value = value
        super().__init__(f"Parameter {parameter} is invalid: {value!r}")


def require_key(key, what: str = "key") -> str:
    if not isinstance(key, str) or not key:
        raise InvalidArgumentError(f"{what} must be a non-empty string")
    return key
