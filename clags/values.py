r"""
Clags value types, verifiers and containers.

Overview
- ValueType: the fixed set of value kinds an argument can carry. Each member
  knows its storage identity, its built-in verifier and its canonical string
  form.
- Verifiers: pure functions token -> value that raise ValueError with a short,
  lowercase reason. The dispatch loop turns that into an INVALID_VALUE fault.
- Variable[T]: caller-owned cell receiving a single parsed value.
- ValueList[T]: caller-owned, typed sequence receiving list values; it refuses
  elements of a foreign storage before anything is written.
- Choice/Choices: enumerated literals with first-match-wins lookup.
- Subcommand/Subcommands: named nested configurations.

Numeric rules (shared by every integer verifier)
- empty tokens fail;
- leading whitespace is skipped, trailing characters (whitespace included) fail;
- only ASCII decimal digits are accepted (no underscores, no other scripts);
- unsigned types reject any sign, "+1" and " -1" included;
- values outside the exact bit-width range fail instead of wrapping.

Size and time
- A magnitude (decimal, optional fraction/exponent) followed by an optional
  unit, with optional whitespace between. Conversion goes through Decimal so
  "1.4MB" is exactly 1_400_000 bytes; fractions of the target unit are
  truncated; results above the uint64 range fail.

Quick example
    >>> verify_uint8("255")
    255
    >>> verify_size("1.5KiB")
    1536
    >>> verify_time_ns("2ms")
    2000000
"""
import math
import os.path
import re
from collections.abc import Sequence
from decimal import ROUND_DOWN, Decimal, localcontext
from enum import Enum
from types import MappingProxyType

from .utils import Unset, coalesce, mirror

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_QUANTITY = re.compile(r"(?P<magnitude>(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)\s*(?P<unit>[A-Za-z]*)")

_UINT64_MAX = 2 ** 64 - 1

_BOUNDS = MappingProxyType({
    # bits, signed
    (8, True): (-2 ** 7, 2 ** 7 - 1),
    (8, False): (0, 2 ** 8 - 1),
    (32, True): (-2 ** 31, 2 ** 31 - 1),
    (32, False): (0, 2 ** 32 - 1),
    (64, True): (-2 ** 63, 2 ** 63 - 1),
    (64, False): (0, 2 ** 64 - 1),
})

_SIZE_UNITS = MappingProxyType({
    "": 1,
    "B": 1,
    "KB": 10 ** 3,
    "KiB": 2 ** 10,
    "MB": 10 ** 6,
    "MiB": 2 ** 20,
    "GB": 10 ** 9,
    "GiB": 2 ** 30,
    "TB": 10 ** 12,
    "TiB": 2 ** 40,
    "PB": 10 ** 15,
    "PiB": 2 ** 50,
    "EB": 10 ** 18,
    "EiB": 2 ** 60,
})

# in nanoseconds
_TIME_UNITS = MappingProxyType({
    "ns": 1,
    "us": 10 ** 3,
    "ms": 10 ** 6,
    "s": 10 ** 9,
    "m": 60 * 10 ** 9,
    "h": 3600 * 10 ** 9,
    "d": 86400 * 10 ** 9,
})

_TRUTHY = frozenset(("true", "yes", "y", "on", "1"))
_FALSY = frozenset(("false", "no", "n", "off", "0"))


def _verify_integer(token, bits, signed):
    kind = "%s %d-bit integer" % ("signed" if signed else "unsigned", bits)
    if not token:
        raise ValueError("expected a %s, got an empty value" % kind)

    stripped = token.lstrip()
    if not signed and stripped.startswith(("+", "-")):
        raise ValueError("expected a %s, got a signed value %r" % (kind, token))
    if not _INTEGER.fullmatch(stripped):
        raise ValueError("expected a %s, got %r" % (kind, token))

    value = int(stripped)
    lower, upper = _BOUNDS[bits, signed]
    if not lower <= value <= upper:
        raise ValueError("%r is out of range for a %s (%d to %d)" % (token, kind, lower, upper))
    return value


def _verify_quantity(token, units, scale, kind):
    if not token:
        raise ValueError("expected a %s, got an empty value" % kind)

    match = _QUANTITY.fullmatch(token.lstrip())
    if not match:
        raise ValueError("expected a %s, got %r" % (kind, token))

    try:
        multiplier = units[match["unit"]]
    except KeyError:
        raise ValueError("unknown %s unit %r in %r (expected one of: %s)" % (
            kind, match["unit"], token, ", ".join(unit for unit in units if unit)
        )) from None

    # enough digits for the whole integer part; the tail only ever rounds toward zero
    try:
        with localcontext(prec=len(match["magnitude"]) + 40, rounding=ROUND_DOWN):
            value = Decimal(match["magnitude"]) * multiplier / scale
    except ArithmeticError:
        raise ValueError("%r is out of range for a %s" % (token, kind)) from None

    if value > _UINT64_MAX:
        raise ValueError("%r is out of range for a %s" % (token, kind))
    return int(value)


def verify_string(token, /):
    """
    accept any token as-is.
    """
    return token


def verify_bool(token, /):
    """
    accept true/false, yes/no, y/n, on/off and 1/0 regardless of case.
    """
    lowered = token.strip().casefold()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("expected a boolean (true/false, yes/no, on/off, 1/0), got %r" % token)


def verify_int8(token, /):
    return _verify_integer(token, 8, True)


def verify_uint8(token, /):
    return _verify_integer(token, 8, False)


def verify_int32(token, /):
    return _verify_integer(token, 32, True)


def verify_uint32(token, /):
    return _verify_integer(token, 32, False)


def verify_int64(token, /):
    return _verify_integer(token, 64, True)


def verify_uint64(token, /):
    return _verify_integer(token, 64, False)


def verify_double(token, /):
    """
    accept a finite decimal floating-point value.

    'nan', 'inf' and magnitudes overflowing a double are rejected.
    """
    if not token:
        raise ValueError("expected a floating-point number, got an empty value")

    stripped = token.lstrip()
    if not _DECIMAL.fullmatch(stripped):
        raise ValueError("expected a floating-point number, got %r" % token)
    if not math.isfinite(value := float(stripped)):
        raise ValueError("%r is out of range for a floating-point number" % token)
    return value


def verify_path(token, /):
    """
    accept an existing filesystem path (file, directory or anything else).
    """
    if not token or not os.path.exists(token):
        raise ValueError("path %r does not exist" % token)
    return token


def verify_file(token, /):
    """
    accept a path to an existing regular file.
    """
    if not token or not os.path.exists(token):
        raise ValueError("file %r does not exist" % token)
    if not os.path.isfile(token):
        raise ValueError("%r is not a regular file" % token)
    return token


def verify_dir(token, /):
    """
    accept a path to an existing directory.
    """
    if not token or not os.path.exists(token):
        raise ValueError("directory %r does not exist" % token)
    if not os.path.isdir(token):
        raise ValueError("%r is not a directory" % token)
    return token


def verify_size(token, /):
    """
    convert a size such as '10', '10B', '1.4MB' or '2 GiB' into bytes.
    """
    return _verify_quantity(token, _SIZE_UNITS, 1, "size")


def verify_time_s(token, /):
    """
    convert a duration with unit s/m/h/d (bare numbers are seconds) into seconds.
    """
    units = {"": _TIME_UNITS["s"]} | {unit: _TIME_UNITS[unit] for unit in ("s", "m", "h", "d")}
    return _verify_quantity(token, units, _TIME_UNITS["s"], "duration")


def verify_time_ns(token, /):
    """
    convert a duration with unit ns/us/ms/s/m/h/d (bare numbers are nanoseconds) into nanoseconds.
    """
    return _verify_quantity(token, {"": 1, **_TIME_UNITS}, 1, "duration")


class ValueType(Enum):
    """
    Value kinds an argument can carry.

    Storage
    - Each member maps to a storage identity. Lists may only receive elements
      whose storage matches their own: a STRING list may collect FILE values,
      a SIZE list may collect UINT64 values, an INT8 list may not collect
      INT32 values. CUSTOM storage is unknown, so it matches anything.
    """
    STRING  = "string"
    CUSTOM  = "custom"
    BOOL    = "bool"
    INT8    = "int8"
    UINT8   = "uint8"
    INT32   = "int32"
    UINT32  = "uint32"
    INT64   = "int64"
    UINT64  = "uint64"
    DOUBLE  = "double"
    CHOICE  = "choice"
    PATH    = "path"
    FILE    = "file"
    DIR     = "dir"
    SIZE    = "size"
    TIME_S  = "time_s"
    TIME_NS = "time_ns"
    SUBCMD  = "subcmd"

    @property
    def storage(self):
        """
        storage identity shared by value types with the same representation.
        """
        return _STORAGES[self]

    @property
    def verifier(self):
        """
        built-in verifier, or None when verification needs a binding
        (CUSTOM, CHOICE, SUBCMD).
        """
        return _VERIFIERS.get(self)

    def format(self, value, /):
        """
        canonical string form of a value; feeding it back to the verifier
        yields an equivalent value.
        """
        match self:
            case ValueType.BOOL:
                return "true" if value else "false"
            case ValueType.DOUBLE:
                return repr(float(value))
            case ValueType.CHOICE:
                return value.value
            case ValueType.SUBCMD:
                return value.name
            case _:
                return str(value)


_STORAGES = MappingProxyType({
    ValueType.STRING: "str",
    ValueType.CUSTOM: None,
    ValueType.BOOL: "bool",
    ValueType.INT8: "int8",
    ValueType.UINT8: "uint8",
    ValueType.INT32: "int32",
    ValueType.UINT32: "uint32",
    ValueType.INT64: "int64",
    ValueType.UINT64: "uint64",
    ValueType.DOUBLE: "double",
    ValueType.CHOICE: "choice",
    ValueType.PATH: "str",
    ValueType.FILE: "str",
    ValueType.DIR: "str",
    ValueType.SIZE: "uint64",
    ValueType.TIME_S: "uint64",
    ValueType.TIME_NS: "uint64",
    ValueType.SUBCMD: "subcmd",
})

_VERIFIERS = MappingProxyType({
    ValueType.STRING: verify_string,
    ValueType.BOOL: verify_bool,
    ValueType.INT8: verify_int8,
    ValueType.UINT8: verify_uint8,
    ValueType.INT32: verify_int32,
    ValueType.UINT32: verify_uint32,
    ValueType.INT64: verify_int64,
    ValueType.UINT64: verify_uint64,
    ValueType.DOUBLE: verify_double,
    ValueType.PATH: verify_path,
    ValueType.FILE: verify_file,
    ValueType.DIR: verify_dir,
    ValueType.SIZE: verify_size,
    ValueType.TIME_S: verify_time_s,
    ValueType.TIME_NS: verify_time_ns,
})


class Variable[_T]:
    """
    Caller-owned cell receiving a single parsed value.

    The engine only ever assigns .value; what was there before (the default)
    is kept until a token overwrites it.
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def __repr__(self):
        return "variable(%r)" % (self.value,)

    def __rich_repr__(self):
        yield self.value


class ValueList[_T](Sequence):
    """
    Caller-owned, typed sequence receiving list values.

    The declared value type only matters through its storage: see
    ValueType.storage. The engine checks accepts() before the first element
    is verified, so a mismatched list stays empty.
    """

    def __init__(self, value_type=ValueType.STRING, /):
        if not isinstance(value_type, ValueType):
            raise TypeError("value-list 'value_type' must be a value-type")
        if value_type is ValueType.SUBCMD:
            raise TypeError("value-list cannot hold subcommands")
        self._value_type = value_type
        self._items = []

    value_type = mirror("value_type")

    @property
    def count(self):
        return len(self._items)

    def accepts(self, value_type, /):
        """
        True when elements of 'value_type' may be stored in this list.
        """
        if ValueType.CUSTOM in (self._value_type, value_type):
            return True
        return self._value_type.storage == value_type.storage

    def append(self, value, /):
        self._items.append(value)

    def clear(self):
        """
        release every element.
        """
        self._items.clear()

    def __getitem__(self, index, /):
        return self._items[index]

    def __len__(self):
        return len(self._items)

    def __eq__(self, other, /):
        if isinstance(other, ValueList):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        return "value-list(%s, %r)" % (self._value_type.value, self._items)


class Choice:
    """
    A literal accepted by a Choices set, with an optional description.

    Choices are compared by identity: the selected entry is the object stored
    in the set, so two entries with the same literal remain distinguishable.
    """
    __slots__ = ("_value", "_description")

    def __init__(self, value, description=Unset, /):
        if not isinstance(value, str):
            raise TypeError("choice 'value' must be a string")
        if not isinstance(description, str | Unset | None):
            raise TypeError("choice 'description' must be a string")
        self._value = value
        self._description = coalesce(description)

    value = mirror("value")
    description = mirror("description")

    def __repr__(self):
        return "choice(%r)" % self._value


class Choices(Sequence):
    """
    Ordered set of literals a CHOICE argument may take.

    Entries may be given as Choice objects, (value, description) pairs or bare
    strings. match() scans in definition order and returns the first entry
    equal to the token (case-insensitively if configured).
    """

    def __init__(self, *choices, case_insensitive=False):
        items = []
        for choice in choices:
            match choice:
                case Choice():
                    items.append(choice)
                case str():
                    items.append(Choice(choice))
                case (value, description):
                    items.append(Choice(value, description))
                case _:
                    raise TypeError("choices entries must be choices, strings or (value, description) pairs")
        self._items = tuple(items)
        self._case_insensitive = bool(case_insensitive)

    case_insensitive = mirror("case_insensitive")

    def match(self, token, /):
        """
        return the first entry matching token, or None.
        """
        if self._case_insensitive:
            token = token.casefold()
            for choice in self._items:
                if choice.value.casefold() == token:
                    return choice
            return None
        for choice in self._items:
            if choice.value == token:
                return choice
        return None

    def index(self, choice, start=0, stop=None, /):
        """
        position of the given entry (by identity); ValueError when absent.
        """
        for index, item in enumerate(self._items[start:stop], start):
            if item is choice:
                return index
        raise ValueError("choice is not part of this set")

    def __getitem__(self, index, /):
        return self._items[index]

    def __len__(self):
        return len(self._items)

    def __repr__(self):
        return "choices(%s)" % ", ".join(repr(choice.value) for choice in self._items)


class Subcommand:
    """
    A named nested configuration selected by a SUBCMD positional.
    """
    __slots__ = ("_name", "_description", "_config")

    def __init__(self, name, description=Unset, config=Unset, /):
        if not isinstance(name, str):
            raise TypeError("subcommand 'name' must be a string")
        if not (name := name.strip()):
            raise ValueError("subcommand 'name' cannot be empty")
        if not isinstance(description, str | Unset | None):
            raise TypeError("subcommand 'description' must be a string")
        self._name = name
        self._description = coalesce(description)
        self._config = coalesce(config)

    name = mirror("name")
    description = mirror("description")
    config = mirror("config")

    def __repr__(self):
        return "subcommand(%r)" % self._name


class Subcommands(Sequence):
    """
    Ordered set of subcommands a SUBCMD positional dispatches to.

    Entries may be Subcommand objects or (name, description, config) triples.
    """

    def __init__(self, *subcommands):
        items = []
        for subcommand in subcommands:
            match subcommand:
                case Subcommand():
                    items.append(subcommand)
                case (name, description, config):
                    items.append(Subcommand(name, description, config))
                case _:
                    raise TypeError("subcommands entries must be subcommands or (name, description, config) triples")
        self._items = tuple(items)

    def find(self, name, /):
        """
        return the entry whose name is exactly 'name', or None.
        """
        for subcommand in self._items:
            if subcommand.name == name:
                return subcommand
        return None

    def index(self, subcommand, start=0, stop=None, /):
        """
        position of the given entry (by identity); ValueError when absent.
        """
        for index, item in enumerate(self._items[start:stop], start):
            if item is subcommand:
                return index
        raise ValueError("subcommand is not part of this set")

    def __getitem__(self, index, /):
        return self._items[index]

    def __len__(self):
        return len(self._items)

    def __repr__(self):
        return "subcommands(%s)" % ", ".join(repr(subcommand.name) for subcommand in self._items)


__all__ = (
    # Types
    "ValueType",
    "Variable",
    "ValueList",
    "Choice",
    "Choices",
    "Subcommand",
    "Subcommands",

    # Verifiers
    "verify_string",
    "verify_bool",
    "verify_int8",
    "verify_uint8",
    "verify_int32",
    "verify_uint32",
    "verify_int64",
    "verify_uint64",
    "verify_double",
    "verify_path",
    "verify_file",
    "verify_dir",
    "verify_size",
    "verify_time_s",
    "verify_time_ns",
)
