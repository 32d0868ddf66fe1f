"""Exception hierarchy for envset. Every failure the CLI reports is an EnvsetError."""


class EnvsetError(Exception):
    """Base class for all envset failures."""


class ParseError(EnvsetError):
    """A malformed assignment found while parsing in strict mode."""

    def __init__(self, line_no: int, reason: str):
        self.line_no = line_no
        self.reason = reason
        super().__init__(f"line {line_no}: {reason}")


class EnvIOError(EnvsetError):
    """Reading or writing the .env file failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class KeyNotFoundError(EnvsetError, KeyError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"key not found: {self.key}"


class InvalidKeyError(EnvsetError, ValueError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"invalid key: {key!r}")
