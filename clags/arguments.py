r"""
Clags argument definitions.

Overview
- Definitions
  • Positional[_T]: value identified by its position in the remaining tokens
    (single, list, optional, or a subcommand selector).
  • Option[_T]: value introduced by a short (-o) and/or long (--output) name;
    list options append one value per occurrence.
  • Flag: valueless switch with a behavior kind (BOOL, COUNT, CONFIG, CALLBACK),
    optionally terminating the parse on match (exit).

- Value-type payload
  The 'type' parameter is a small sum type resolved on construction into the
  pair (value_type, binding):
  • a ValueType              -> (that type, None)
  • a Choices set            -> (CHOICE, the set)
  • a Subcommands set        -> (SUBCMD, the set)      positionals only
  • any other callable       -> (CUSTOM, the verifier)
  A bare CHOICE/SUBCMD/CUSTOM value type therefore has no binding; that is
  reported as an invalid configuration when the definition is first parsed.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes
    the fields declared in __introspectable__ via read-only properties.

Validation split
- Constructors reject Python-level misuse right away (TypeError/ValueError).
- Invariants spanning several definitions (duplicate names, list layout,
  target/list agreement, missing bindings) are checked by the parser before
  any token is consumed, and reported through the configuration's log.

Quick example:
    >>> from clags import Positional, Option, Flag, Variable, ValueType
    >>> path = Variable()
    >>> jobs = Variable(1)
    >>> verbose = Variable(False)
    >>> Positional(path, "input", "file to read", ValueType.FILE)
    >>> Option("j", "jobs", jobs, "N", "parallel jobs", ValueType.UINT8)
    >>> Flag("v", "verbose", verbose, "talk more")
"""
import functools
import operator
import re
from enum import Enum

from .utils import *
from .values import Choices, Subcommands, ValueList, ValueType, Variable


class FlagKind(Enum):
    """
    what a flag does on every occurrence.

    - BOOL: set its target to True.
    - COUNT: increment its target (starting from 0).
    - CONFIG: store the configuration that was active when it matched.
    - CALLBACK: call its callback with that configuration.
    """
    BOOL     = "bool"
    COUNT    = "count"
    CONFIG   = "config"
    CALLBACK = "callback"


class ArgumentType(type):
    """
    Metaclass giving definitions a uniform, introspectable surface.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in messages and representations.
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_<name>" field.
    - Provide stable __repr__/__rich_repr__ implementations.
    - Seal classes declared with sealed=True against subclassing.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - flag(short='v', long='verbose', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_text(cls, metadata, key, /):
    """
    Internal: validate an optional free-text field (descr, metavar).

    Unset becomes None; a provided string is trimmed and must not be empty.
    """
    if not isinstance(text := metadata[key], str | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    elif isinstance(text, str) and not (text := text.strip()):
        raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
    metadata[key] = coalesce(text)


def _sanitize_identifiers(cls, metadata, /):
    """
    Internal: validate the short/long identifiers of options and flags.

    - short: None/Unset or exactly one character, neither '-' nor whitespace.
    - long: None/Unset or a non-empty name without whitespace, '=' or a leading '-'.
    Both may be missing here; a definition with no identifier at all is reported
    at parse time as an invalid configuration.
    """
    short = coalesce(metadata["short"])
    if short is not None:
        if not isinstance(short, str):
            raise TypeError(f"{cls.__typename__} 'short' must be a single character")
        elif len(short) != 1 or short == "-" or short.isspace():
            raise ValueError(f"{cls.__typename__} 'short' must be a single character other than '-' (got {short!r})")
    metadata["short"] = short

    long = coalesce(metadata["long"])
    if long is not None:
        if not isinstance(long, str):
            raise TypeError(f"{cls.__typename__} 'long' must be a string")
        elif not long or long.startswith("-") or "=" in long or any(char.isspace() for char in long):
            raise ValueError(f"{cls.__typename__} 'long' must be a name without '=', whitespace or leading '-' (got {long!r})")
    metadata["long"] = long


def _sanitize_target(cls, metadata, /):
    if not isinstance(target := coalesce(metadata["target"]), Variable | ValueList | None):
        raise TypeError(f"{cls.__typename__} 'target' must be a variable or a value-list")
    metadata["target"] = target


def _sanitize_value_metadata(cls, metadata, /):
    """
    Internal: resolve the 'type' payload into (value_type, binding).

    Raises
    - TypeError: when 'type' is none of ValueType, Choices, Subcommands or a
      callable, or when an option is given a subcommand payload.
    """
    match payload := metadata.pop("type"):
        case ValueType():
            value_type, binding = payload, None
        case Choices():
            value_type, binding = ValueType.CHOICE, payload
        case Subcommands():
            value_type, binding = ValueType.SUBCMD, payload
        case _ if callable(payload):
            value_type, binding = ValueType.CUSTOM, payload
        case _:
            raise TypeError(f"{cls.__typename__} 'type' must be a value-type, choices, subcommands or a callable verifier")

    if value_type is ValueType.SUBCMD and cls is not Positional:
        raise TypeError(f"{cls.__typename__} cannot select subcommands, only positionals can")

    metadata["value_type"] = value_type
    metadata["binding"] = binding
    metadata["is_list"] = bool(metadata["is_list"])


class Positional[_T](metaclass=ArgumentType, sealed=True):
    """
    Positional, value-bearing argument definition.

    Positionals are filled in definition order. A list positional keeps
    receiving tokens until the configured list terminator (or the end of
    input); an optional positional may receive nothing. A SUBCMD positional
    consumes one token naming a subcommand and hands every following token to
    that subcommand's configuration.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "target",
        "name",
        "descr",
        "value_type",
        "binding",
        "is_list",
        "optional",
    )

    def __new__(cls, target, name, descr=Unset, /, type=ValueType.STRING, *, is_list=False, optional=False):
        """
        Construct a positional definition.

        Parameters
        - target: Variable | ValueList | None
          Receives the value (a ValueList for list positionals).
        - name: str
          Display name used in diagnostics. Must be non-empty.
        - descr: Unset | str
          Short description. If Unset, becomes None.
        - type: ValueType | Choices | Subcommands | Callable
          Value-type payload (see module documentation).
        - is_list: bool
          Accumulate every eligible token into the target list.
        - optional: bool
          The positional may receive no token at all.
        """
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")

        metadata = {
            "target": target,
            "name": name,
            "descr": descr,
            "type": type,
            "is_list": is_list,
            "optional": bool(optional),
        }
        _sanitize_target(cls, metadata)
        _sanitize_text(cls, metadata, "descr")
        _sanitize_value_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def display(self):
        return self._name


class Option[_T](metaclass=ArgumentType, sealed=True):
    """
    Named, value-bearing argument definition.

    Accepted forms: '-o VALUE', '-oVALUE', '--output VALUE', '--output=VALUE'.
    A list option appends one value per occurrence; a non-list option keeps
    the last value given.
    """

    __introspectable__ = (
        "short",
        "long",
        "target",
        "metavar",
        "descr",
        "value_type",
        "binding",
        "is_list",
    )

    def __new__(cls, short, long, target, metavar=Unset, descr=Unset, /, type=ValueType.STRING, *, is_list=False):
        metadata = {
            "short": short,
            "long": long,
            "target": target,
            "metavar": metavar,
            "descr": descr,
            "type": type,
            "is_list": is_list,
        }
        _sanitize_identifiers(cls, metadata)
        _sanitize_target(cls, metadata)
        _sanitize_text(cls, metadata, "metavar")
        _sanitize_text(cls, metadata, "descr")
        _sanitize_value_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def display(self):
        """
        '--long' when available, else '-s'.
        """
        return _display(self)


class Flag(metaclass=ArgumentType, sealed=True):
    """
    Named, valueless argument definition.

    Flags may be combined in short groups ('-vvq'); a flag never accepts an
    inline value ('--verbose=1' is an invalid option). With exit=True a
    match ends the parse successfully right away, before any check on missing
    positionals.
    """

    __introspectable__ = (
        "short",
        "long",
        "target",
        "descr",
        "kind",
        "exit",
        "callback",
    )

    def __new__(cls, short, long, target=Unset, descr=Unset, /, kind=FlagKind.BOOL, *, exit=False, callback=Unset):
        if not isinstance(kind, FlagKind):
            raise TypeError(f"{cls.__typename__} 'kind' must be a flag-kind")
        if callback is not Unset and not callable(callback):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")

        metadata = {
            "short": short,
            "long": long,
            "target": target,
            "descr": descr,
            "kind": kind,
            "exit": bool(exit),
            "callback": coalesce(callback),
        }
        _sanitize_identifiers(cls, metadata)
        _sanitize_text(cls, metadata, "descr")
        if not isinstance(metadata["target"], Variable | Unset | None):
            raise TypeError(f"{cls.__typename__} 'target' must be a variable")
        metadata["target"] = coalesce(metadata["target"])

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def display(self):
        """
        '--long' when available, else '-s'.
        """
        return _display(self)


def _display(argument, /):
    if argument.long is not None:
        return "--" + argument.long
    if argument.short is not None:
        return "-" + argument.short
    return "<unnamed %s>" % type(argument).__typename__


def help_flag(target, /):
    """
    the conventional '-h/--help' flag: sets target and ends the parse.
    """
    return Flag("h", "help", target, "print this help dialog", exit=True)


def help_config_flag(target, /):
    """
    like help_flag(), but target receives the configuration that matched, so
    the caller can show the help of the right (sub)command.
    """
    return Flag("h", "help", target, "print this help dialog", FlagKind.CONFIG, exit=True)


__all__ = (
    # Types
    "FlagKind",
    "Positional",
    "Option",
    "Flag",

    # Factories
    "help_flag",
    "help_config_flag",
)
