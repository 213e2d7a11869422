r"""
Clags configurations.

Overview
- Options: the behavioral knobs of one (sub)command (ignore prefix, list
  terminator, '--' toggling, string duplication, logging, description).
  Options are plain mutable objects; Config takes a private copy, so one
  Options instance can serve as a template for several configurations.
- Config: an immutable tuple of argument definitions plus the runtime fields
  the parser fills in (name, parent, error, fault, allocations).

Ownership
- With duplicate_strings enabled, every string stored into a target is
  registered in the owning configuration's allocations; free_allocs() drops
  them. free() also empties the value-lists bound to the definitions. Neither
  walks into subcommand configurations: call them on each configuration (see
  Config.walk()).
- The parent link is a weak reference; a subcommand configuration never keeps
  its parent alive.

Quick example:
    >>> from clags import Config, Positional, Variable
    >>> path = Variable()
    >>> config = Config(Positional(path, "path"), list_terminator="::")
    >>> result = config.parse(["prog", "a.txt"])
    >>> bool(result), path.value
    (True, 'a.txt')
"""
import weakref

from .arguments import Flag, Option, Positional
from .faults import ErrorCode
from .logs import LogLevel, emit
from .utils import *
from .values import ValueList, ValueType


class Options:
    """
    Behavioral options of a configuration.

    Attributes
    - ignore_prefix: str | None
      tokens starting with this prefix are skipped entirely.
    - list_terminator: str | None
      token closing an open list positional (consumed, never stored).
    - allow_option_parsing_toggle: bool
      every '--' flips option recognition instead of disabling it for good.
    - duplicate_strings: bool
      copy string values and register the copies in the configuration.
    - log_handler: callable(level, message) | None
      None selects the default stderr handler.
    - min_log_level: LogLevel
      messages below this level are dropped.
    - description: str | None
      free text for usage renderers.
    """
    __slots__ = (
        "ignore_prefix",
        "list_terminator",
        "allow_option_parsing_toggle",
        "duplicate_strings",
        "log_handler",
        "min_log_level",
        "description",
    )

    def __init__(
            self,
            *,
            ignore_prefix=None,
            list_terminator=None,
            allow_option_parsing_toggle=False,
            duplicate_strings=False,
            log_handler=None,
            min_log_level=LogLevel.INFO,
            description=None
    ):
        if not isinstance(ignore_prefix, str | None):
            raise TypeError("options 'ignore_prefix' must be a string")
        elif ignore_prefix == "":
            raise ValueError("options 'ignore_prefix' cannot be empty")
        if not isinstance(list_terminator, str | None):
            raise TypeError("options 'list_terminator' must be a string")
        elif list_terminator == "":
            raise ValueError("options 'list_terminator' cannot be empty")
        if log_handler is not None and not callable(log_handler):
            raise TypeError("options 'log_handler' must be callable")
        if not isinstance(description, str | None):
            raise TypeError("options 'description' must be a string")

        self.ignore_prefix = ignore_prefix
        self.list_terminator = list_terminator
        self.allow_option_parsing_toggle = bool(allow_option_parsing_toggle)
        self.duplicate_strings = bool(duplicate_strings)
        self.log_handler = log_handler
        self.min_log_level = LogLevel(min_log_level)
        self.description = description

    def replace(self, **overrides):
        """
        return a copy with the given fields replaced (validated like __init__).
        """
        return type(self)(**{name: getattr(self, name) for name in self.__slots__} | overrides)

    def __copy__(self):
        return self.replace()

    def __replace__(self, **overrides):
        return self.replace(**overrides)

    def __repr__(self):
        return "options(%s)" % ", ".join("%s=%r" % (name, getattr(self, name)) for name in self.__slots__)


class Config:
    """
    One (sub)command: its argument definitions, options and parse state.

    Runtime fields (written by the parser)
    - name: str | None
      argv[0] for the root, the subcommand name for children.
    - parent: Config | None
      the configuration that dispatched to this one during the last parse.
    - error: ErrorCode
      OK unless the last parse failed in this configuration.
    - fault: ParseFault | None
      the exception behind a non-OK error.
    - allocations: tuple[str, ...]
      strings duplicated on behalf of this configuration.
    """

    def __init__(self, *arguments, options=Unset, **overrides):
        for argument in arguments:
            if not isinstance(argument, Positional | Option | Flag):
                raise TypeError("config arguments must be positionals, options or flags (got %r)" % type(argument).__name__)

        if not isinstance(options, Options | Unset):
            raise TypeError("config 'options' must be an options object")

        self._arguments = arguments
        self._options = coalesce(options, Options()).replace(**overrides)
        self._parent = None
        self._allocations = []
        self._layout = None

        self.name = None
        self.error = ErrorCode.OK
        self.fault = None

    arguments = mirror("arguments")
    options = mirror("options")

    @property
    def positionals(self):
        return tuple(argument for argument in self._arguments if isinstance(argument, Positional))

    @property
    def allocations(self):
        return tuple(self._allocations)

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, parent):
        if not isinstance(parent, Config | None):
            raise TypeError("config 'parent' must be a config")
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def root(self):
        """
        Return the topmost configuration of the last dispatch chain.
        """
        return self.path[0]

    @property
    def path(self):
        """
        Return the dispatch chain from root to this configuration as a tuple.

        A configuration dispatching to itself (directly or through others)
        appears once; the walk stops at the first repeated configuration.
        """
        path = [config := self]
        seen = {id(config)}
        while (config := config.parent) is not None and id(config) not in seen:
            seen.add(id(config))
            path.append(config)
        return tuple(reversed(path))

    @property
    def route(self):
        """
        names along path joined by spaces (e.g. 'prog remote add').
        """
        return " ".join(config.name or "?" for config in self.path)

    def walk(self):
        """
        yield this configuration and every configuration reachable through
        subcommand positionals, depth first, each once.
        """
        seen = set()
        stack = [self]
        while stack:
            config = stack.pop()
            if id(config) in seen:
                continue
            seen.add(id(config))
            yield config
            for positional in reversed(config.positionals):
                if positional.value_type is not ValueType.SUBCMD or positional.binding is None:
                    continue
                for subcommand in reversed(positional.binding):
                    if isinstance(subcommand.config, Config):
                        stack.append(subcommand.config)

    def log(self, level, message, /, *args):
        """
        log through this configuration's handler and minimum level.

        The options are read at call time, so lowering min_log_level on a
        failed configuration re-enables its logging afterwards.
        """
        return emit(self._options.log_handler, self._options.min_log_level, level, message, *args)

    def duplicate_string(self, string, /):
        """
        return a copy of string registered in allocations when duplication is
        enabled, the string itself otherwise.
        """
        if not self._options.duplicate_strings:
            return string
        duplicate = str(string)
        self._allocations.append(duplicate)
        return duplicate

    def free_allocs(self):
        """
        release the duplicated strings of this configuration only.
        """
        self._allocations.clear()

    def free(self):
        """
        empty every value-list bound to this configuration's definitions and
        release its duplicated strings; subcommand configurations are left
        untouched.
        """
        for argument in self._arguments:
            if isinstance(argument.target, ValueList):
                argument.target.clear()
        self.free_allocs()

    def parse(self, args=Unset, /):
        """
        parse args (argv-like: args[0] is the program name; defaults to
        sys.argv) against this configuration. See clags.parser.parse().
        """
        from .parser import parse
        return parse(args, self)

    def __copy__(self):
        return type(self)(*self._arguments, options=self._options)

    def __repr__(self):
        return "config(name=%r, arguments=%d, error=%s)" % (self.name, len(self._arguments), self.error.name)

    def __rich_repr__(self):
        yield "name", self.name
        yield "arguments", self._arguments
        yield "options", self._options
        yield "error", self.error


__all__ = (
    "Options",
    "Config",
)
