"""Errors raised while parsing adb socket specs, global options and env values."""

from __future__ import annotations


class ParseError(ValueError):
    """Raised when a string cannot be converted into one of the adb value types.

    ``value`` is the offending input, ``target`` names the type that was being
    parsed and ``description`` is a short, optional explanation. When the failure
    comes from another parser (``ipaddress``, ``int``...) it is chained as
    ``__cause__``.
    """

    def __init__(self, value: str, target: str, description: str = "") -> None:
        self.value = value
        self.target = target
        self.description = description
        super().__init__(value, target, description)

    def __str__(self) -> str:
        message = f"Failed to parse `{self.value}` to `{self.target}`"
        if self.description:
            message = f"{message}: {self.description}"
        if self.__cause__ is not None:
            message = f"{message}. source: {self.__cause__}"
        return message


class InvalidFormat(ParseError):
    """The input does not follow the expected syntax."""


class MissingValue(ParseError):
    """A flag that requires an argument was given without one."""


class UnknownOption(ParseError):
    """The flag is not a recognised adb global option."""


class InvalidValue(ParseError):
    """A recognised flag or variable carries a value of the wrong shape."""


class ResolutionFailed(ParseError):
    """A hostname could not be resolved to any IP address."""
