"""
Clags faults (error kinds) and rendering.

Scope
- ErrorCode: the closed set of outcomes a configuration can record after a
  parse, each with a fixed human-readable description.
- ParseFault: base exception carrying message + options (the configuration
  that failed, the offending token and its position, a hint) that knows how
  to render itself through rich.
- One subclass per non-OK error code, so callers may catch precisely.

Integration
- The dispatch loop raises faults at the first problem it sees; parse()
  catches them at its boundary, records the code on the failing
  configuration and hands the fault back inside the ParseResult.
- Callers that prefer exceptions call ParseResult.raise_for_fault().
"""
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset


class ErrorCode(IntEnum):
    """
    closed set of error kinds recorded on a configuration.

    grouping
    - OK: the configuration parsed (or was never reached by a fault).
    - INVALID_CONFIG: structural misuse of the definitions themselves.
    - INVALID_VALUE: a token failed its verifier, choice set or subcommand set.
    - INVALID_OPTION: unrecognized option or flag syntax.
    - TOO_MANY_ARGUMENTS / TOO_FEW_ARGUMENTS: positional arity mismatches.
    """
    OK                 = 0
    INVALID_CONFIG     = 1
    INVALID_VALUE      = 2
    INVALID_OPTION     = 3
    TOO_MANY_ARGUMENTS = 4
    TOO_FEW_ARGUMENTS  = 5

    @property
    def description(self):
        """
        the fixed, human-readable description of this error kind.
        """
        return _DESCRIPTIONS[self]

    @property
    def label(self):
        """
        lowercase, hyphenated label used in rendered headers (e.g. 'invalid-value').
        """
        return self.name.lower().replace("_", "-")


_DESCRIPTIONS = MappingProxyType({
    ErrorCode.OK: "no error",
    ErrorCode.INVALID_CONFIG: "configuration is invalid",
    ErrorCode.INVALID_VALUE: "argument value does not match expected type or criteria",
    ErrorCode.INVALID_OPTION: "unrecognized option or flag syntax",
    ErrorCode.TOO_MANY_ARGUMENTS: "too many positional arguments provided",
    ErrorCode.TOO_FEW_ARGUMENTS: "required positional arguments missing",
})


def describe(code, /):
    """
    return the fixed description of an error code.
    """
    if not isinstance(code, ErrorCode):
        raise TypeError("describe() argument must be an error-code")
    return code.description


class ParseFault(Exception):
    code = ErrorCode.OK
    title = "parse fault"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def config(self):
        """
        the (sub)configuration in whose context the fault was raised.
        """
        return self.options.get("config")

    def __str__(self):
        return self.message or self.code.description

    def __rich__(self):
        config = self.config

        name = getattr(config, "name", None) or "clags"
        header = Text.assemble(
            "[ ",
            (name, "bold"),
            " — ",
            (self.code.label, "bold cyan"),
            " | ",
            (self.title, "bold magenta"),
            " ]"
        )
        message = Text(str(self))
        if not (hint := self.options.get("hint")):
            return Group(header, message)
        return Group(header, message, Text.assemble((" → ", "green dim"), (hint, "italic green")))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidConfigError(ParseFault):
    code = ErrorCode.INVALID_CONFIG
    title = "invalid configuration"


class InvalidValueError(ParseFault):
    code = ErrorCode.INVALID_VALUE
    title = "invalid value"


class InvalidOptionError(ParseFault):
    code = ErrorCode.INVALID_OPTION
    title = "invalid option or flag"


class TooManyArgumentsError(ParseFault):
    code = ErrorCode.TOO_MANY_ARGUMENTS
    title = "too many arguments"


class TooFewArgumentsError(ParseFault):
    code = ErrorCode.TOO_FEW_ARGUMENTS
    title = "too few arguments"


__all__ = (
    "ErrorCode",
    "ParseFault",
    "InvalidConfigError",
    "InvalidValueError",
    "InvalidOptionError",
    "TooManyArgumentsError",
    "TooFewArgumentsError",
    "describe",
)
