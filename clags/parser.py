r"""
Clags dispatch loop.

phases
- setup
  • the root configuration gets argv[0] as its name and loses any stale parent.
  • every configuration entered (root or subcommand) resets its error/fault,
    then validates its definitions before it consumes a single token.
- loop (one left-to-right pass over a shared deque)
  • ignore-prefix          → skip the token.
  • '--'                   → disable option recognition (or toggle it).
  • list terminator        → close the list positional under the cursor.
  • '--name[=value]'       → long option/flag.
  • '-xyz'                 → short flag group (getopt rules).
  • anything else          → next positional; a subcommand positional hands
                             the rest of the deque to its child configuration.
- end of input
  • required positionals that received nothing → too few arguments.

failures
- the first fault anywhere in the recursive chain aborts the whole parse.
  parse() records its code on the configuration that raised it and returns a
  FAILED result pointing at that configuration. values stored before the
  fault stay stored.

indexing
- positions are argv indices (argv[1] is the "first" position), shared by
  parent and child configurations; messages lead with ordinals.

Quick example:
    >>> from clags import Config, Option, Positional, Variable, ValueType, parse
    >>> count, name = Variable(1), Variable()
    >>> config = Config(Positional(name, "name"), Option("n", "count", count, "N", type=ValueType.UINT8))
    >>> result = parse(["prog", "-n", "3", "world"], config)
    >>> result.outcome, count.value, name.value
    (<Outcome.COMPLETED: 'completed'>, 3, 'world')
"""
import copy
import difflib
import sys
from collections import deque, namedtuple
from enum import Enum

from .arguments import Flag, FlagKind, Option, Positional
from .config import Config
from .faults import (
    ErrorCode,
    InvalidConfigError,
    InvalidOptionError,
    InvalidValueError,
    ParseFault,
    TooFewArgumentsError,
    TooManyArgumentsError,
)
from .logs import LogLevel
from .utils import *
from .values import ValueList, ValueType, Variable

_STRING_STORAGE = ValueType.STRING.storage

_Layout = namedtuple("_Layout", ("positionals", "shorts", "longs"))


class Outcome(Enum):
    COMPLETED = "completed"
    EXITED    = "exited"
    FAILED    = "failed"


class ParseResult:
    """
    What a parse ended with.

    Fields
    - outcome: Outcome
      COMPLETED when every token was consumed, EXITED when an exit flag
      matched, FAILED when a fault aborted the parse.
    - config: Config
      FAILED: the configuration whose error field records the fault.
      EXITED: the configuration in which the exit flag matched.
      COMPLETED: the deepest configuration reached (the selected subcommand).
    - fault: ParseFault | None
      the fault behind a FAILED outcome.

    Truthiness is "did not fail", so 'if not config.parse(): ...' reads well.
    """
    __slots__ = ("_outcome", "_config", "_fault")

    def __init__(self, outcome, config, fault=None, /):
        self._outcome = outcome
        self._config = config
        self._fault = fault

    outcome = mirror("outcome")
    config = mirror("config")
    fault = mirror("fault")

    @property
    def failed(self):
        """
        the failing configuration, or None.
        """
        return self._config if self._outcome is Outcome.FAILED else None

    @property
    def exited(self):
        return self._outcome is Outcome.EXITED

    def raise_for_fault(self):
        """
        raise the recorded fault, if any; return self otherwise.
        """
        if self._fault is not None:
            raise self._fault
        return self

    def __bool__(self):
        return self._outcome is not Outcome.FAILED

    def __repr__(self):
        return "parse-result(outcome=%s, config=%r)" % (self._outcome.name, self._config)

    def __rich_repr__(self):
        yield "outcome", self._outcome
        yield "config", self._config
        yield "fault", self._fault, None


class _Stream:
    """
    argv suffix shared by a configuration and the subcommands it dispatches to.
    """
    __slots__ = ("tokens", "index")

    def __init__(self, tokens, /):
        self.tokens = deque(tokens)
        self.index = 0

    def pop(self):
        self.index += 1
        return self.tokens.popleft()

    def __bool__(self):
        return bool(self.tokens)


def _describe(argument, /):
    if isinstance(argument, Positional):
        return "positional %r" % argument.name
    return "%s %r" % (type(argument).__typename__, argument.display)


def _layout(config, /):
    r"""
    validate the definitions of a configuration and index them for dispatch.

    errors (logged at CONFIG_ERROR, then raised as one InvalidConfigError)
    - option/flag without short and long identifiers;
    - the same short or long identifier on two options/flags;
    - CUSTOM/CHOICE/SUBCMD without their binding; SUBCMD on a list;
      a subcommand without a configuration;
    - list without a value-list target, non-list with a value-list target;
    - a positional after a list positional when no terminator is configured;
    - a required positional after an optional one;
    - a CALLBACK flag without a callback.

    warnings (logged at CONFIG_WARNING)
    - empty choice or subcommand sets;
    - positionals after a subcommand positional (never reached);
    - BOOL/COUNT/CONFIG flags without a target.

    the result is cached on the configuration once it validates.
    """
    if config._layout is not None:
        return config._layout

    problems = []

    def error(message, /):
        config.log(LogLevel.CONFIG_ERROR, message)
        problems.append(message)

    def warning(message, /):
        config.log(LogLevel.CONFIG_WARNING, message)

    def check_value(argument):
        described = _describe(argument)
        match argument.value_type:
            case ValueType.CUSTOM if argument.binding is None:
                error("%s has a custom value type but no verifier" % described)
            case ValueType.CHOICE if argument.binding is None:
                error("%s has a choice value type but no choices" % described)
            case ValueType.CHOICE if not argument.binding:
                warning("%s has an empty choice set and will reject every value" % described)
            case ValueType.SUBCMD if argument.binding is None:
                error("%s selects subcommands but has no subcommand set" % described)
            case ValueType.SUBCMD:
                if argument.is_list:
                    error("%s selects subcommands and cannot be a list" % described)
                if not argument.binding:
                    warning("%s has an empty subcommand set and will reject every value" % described)
                for subcommand in argument.binding:
                    if not isinstance(subcommand.config, Config):
                        error("subcommand %r of %s has no configuration" % (subcommand.name, described))

        if argument.is_list and not isinstance(argument.target, ValueList):
            error("%s is a list but its target is not a value-list" % described)
        elif not argument.is_list and isinstance(argument.target, ValueList):
            error("%s targets a value-list but is not declared as a list" % described)

    def check_identifiers(argument):
        described = _describe(argument)
        if argument.short is None and argument.long is None:
            error("%s has neither a short nor a long name" % described)
        if argument.short is not None:
            if (other := shorts.setdefault(argument.short, argument)) is not argument:
                error("short name '-%s' is used by both %s and %s" % (argument.short, _describe(other), described))
        if argument.long is not None:
            if (other := longs.setdefault(argument.long, argument)) is not argument:
                error("long name '--%s' is used by both %s and %s" % (argument.long, _describe(other), described))

    positionals = []
    shorts = {}
    longs = {}

    list_, optional, subcommand = None, None, None
    for argument in config.arguments:
        match argument:
            case Positional():
                check_value(argument)
                if subcommand is not None:
                    warning("%s follows %s and can never be reached" % (_describe(argument), _describe(subcommand)))
                if list_ is not None and config.options.list_terminator is None:
                    error("%s follows list %s but no list terminator is configured" % (_describe(argument), _describe(list_)))
                if optional is not None and not argument.optional:
                    error("required %s follows optional %s" % (_describe(argument), _describe(optional)))
                if argument.is_list:
                    list_ = list_ or argument
                if argument.optional:
                    optional = optional or argument
                if argument.value_type is ValueType.SUBCMD:
                    subcommand = subcommand or argument
                positionals.append(argument)
            case Option():
                check_identifiers(argument)
                check_value(argument)
            case Flag():
                check_identifiers(argument)
                if argument.kind is FlagKind.CALLBACK and argument.callback is None:
                    error("%s is a callback flag without a callback" % _describe(argument))
                elif argument.kind is not FlagKind.CALLBACK and argument.target is None:
                    warning("%s has no target, its occurrences are not recorded" % _describe(argument))

    if problems:
        raise InvalidConfigError(
            problems[0] if len(problems) == 1 else "%s (and %d more problems)" % (problems[0], len(problems) - 1),
            config=config,
            problems=tuple(problems),
            hint="fix the argument definitions of %r" % (config.name or "this command"),
        )

    config._layout = _Layout(tuple(positionals), shorts, longs)
    return config._layout


class _Dispatcher:
    """
    state of one configuration while it consumes tokens.
    """

    def __init__(self, config, stream, enabled, /):
        config.error = ErrorCode.OK
        config.fault = None

        self.config = config
        self.options = config.options
        self.stream = stream
        self.enabled = enabled
        self.layout = _layout(config)
        self.cursor = 0
        self.counts = dict.fromkeys(self.layout.positionals, 0)
        self.given = set()

    def trigger(self, fault, /, **options):
        """
        attach context to a fault, log it through the configuration and hand
        it back for raising.
        """
        fault = copy.replace(fault, **options, config=self.config, index=self.stream.index)
        level = LogLevel.CONFIG_ERROR if isinstance(fault, InvalidConfigError) else LogLevel.ERROR
        self.config.log(level, str(fault))
        return fault

    def run(self):
        while self.stream:
            token = self.stream.pop()
            if (result := self.dispatch(token)) is not None:
                return result
        self.finish()
        return Outcome.COMPLETED, self.config

    def dispatch(self, token, /):
        index = self.stream.index

        if self.options.ignore_prefix is not None and token.startswith(self.options.ignore_prefix):
            return None

        if token == "--" and (self.enabled or self.options.allow_option_parsing_toggle):
            self.enabled = not self.enabled
            return None

        if token == self.options.list_terminator and (positional := self.current()) is not None and positional.is_list:
            if not positional.optional and not self.counts[positional]:
                raise self.trigger(TooFewArgumentsError(
                    "list %r closed at %s position before receiving any value" % (positional.name, ordinal(index)),
                    token=token,
                    argument=positional,
                    hint="give at least one %s before %r" % (positional.name, token),
                ))
            self.cursor += 1
            return None

        if self.enabled and token.startswith("--") and len(token) > 2:
            return self.long(token)

        if self.enabled and token.startswith("-") and len(token) > 1:
            if not (token[1].isdigit() or token[1] == ".") or token[1] in self.layout.shorts:
                return self.short(token)

        return self.positional(token)

    def current(self):
        if self.cursor < len(self.layout.positionals):
            return self.layout.positionals[self.cursor]
        return None

    def long(self, token, /):
        index = self.stream.index
        name, separator, value = token[2:].partition("=")

        if (argument := self.layout.longs.get(name)) is None:
            suggestions = difflib.get_close_matches(name, self.layout.longs.keys(), 3)
            try:
                hint = "did you mean '--%s'?" % suggestions[0]
            except IndexError:
                hint = "run '%s --help' to see the available options" % self.config.route
            raise self.trigger(InvalidOptionError(
                "unknown option %r at %s position" % ("--" + name, ordinal(index)),
                token=token,
                suggestions=tuple(suggestions),
                hint=hint,
            ))

        if isinstance(argument, Flag):
            if separator:
                raise self.trigger(InvalidOptionError(
                    "flag %r at %s position cannot take a value" % (argument.display, ordinal(index)),
                    token=token,
                    argument=argument,
                    hint="remove everything from '=' (for example: %s)" % argument.display,
                ))
            return self.flag(argument)

        if not separator:
            value = self.next_value(argument)
        self.option(argument, value, index)
        return None

    def short(self, token, /):
        index = self.stream.index
        group = token[1:]

        for offset, char in enumerate(group):
            if (argument := self.layout.shorts.get(char)) is None:
                if offset:
                    message = "unknown flag '-%s' in %r at %s position" % (char, token, ordinal(index))
                else:
                    message = "unknown option '-%s' at %s position" % (char, ordinal(index))
                raise self.trigger(InvalidOptionError(
                    message,
                    token=token,
                    hint="run '%s --help' to see the available options" % self.config.route,
                ))

            if isinstance(argument, Option):
                value = group[offset + 1:] or self.next_value(argument)
                self.option(argument, value, index)
                return None

            if (result := self.flag(argument)) is not None:
                return result
        return None

    def next_value(self, argument, /):
        if not self.stream:
            raise self.trigger(InvalidOptionError(
                "option %r at %s position is missing its value" % (argument.display, ordinal(self.stream.index)),
                argument=argument,
                hint="pass a value after it (for example: %s %s)" % (argument.display, argument.metavar or "VALUE"),
            ))
        return self.stream.pop()

    def option(self, argument, token, index, /):
        if not argument.is_list and argument in self.given:
            self.config.log(
                LogLevel.WARNING,
                "option %r given again at %s position, keeping the last value" % (argument.display, ordinal(index))
            )
        self.given.add(argument)
        self.store(argument, token, index)

    def flag(self, argument, /):
        target = argument.target
        match argument.kind:
            case FlagKind.BOOL if target is not None:
                target.value = True
            case FlagKind.COUNT if target is not None:
                target.value = (target.value or 0) + 1
            case FlagKind.CONFIG if target is not None:
                target.value = self.config
            case FlagKind.CALLBACK:
                argument.callback(self.config)

        if argument.exit:
            return Outcome.EXITED, self.config
        return None

    def positional(self, token, /):
        index = self.stream.index

        if (positional := self.current()) is None:
            count = len(self.layout.positionals)
            raise self.trigger(TooManyArgumentsError(
                "unexpected argument %r at %s position" % (token, ordinal(index)),
                token=token,
                hint="%r takes %s positional argument%s" % (
                    self.config.name or "this command",
                    "no" if not count else "at most %d" % count,
                    "" if count == 1 else "s",
                ),
            ))

        if positional.value_type is ValueType.SUBCMD:
            return self.subcommand(positional, token)

        self.store(positional, token, index)
        if positional.is_list:
            self.counts[positional] += 1
        else:
            self.cursor += 1
        return None

    def subcommand(self, positional, token, /):
        index = self.stream.index

        if (subcommand := positional.binding.find(token)) is None:
            names = [subcommand.name for subcommand in positional.binding]
            suggestions = difflib.get_close_matches(token, names, 3)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "available subcommands: %s" % (", ".join(names) or "none")
            raise self.trigger(InvalidValueError(
                "unknown subcommand %r at %s position" % (token, ordinal(index)),
                token=token,
                argument=positional,
                suggestions=tuple(suggestions),
                hint=hint,
            ))

        if positional.target is not None:
            positional.target.value = subcommand
        self.cursor += 1

        child = subcommand.config
        child.parent = self.config
        child.name = subcommand.name
        return _Dispatcher(child, self.stream, self.enabled).run()

    def store(self, argument, token, index, /):
        """
        verify token for argument and write the value into its target.
        """
        target = argument.target
        value_type = argument.value_type

        if argument.is_list and not target.accepts(value_type):
            raise self.trigger(InvalidConfigError(
                "%s reads %s values but its value-list holds %s values" % (
                    _describe(argument), value_type.value, target.value_type.value
                ),
                token=token,
                argument=argument,
                hint="bind it to ValueList(ValueType.%s)" % value_type.name,
            ))

        match value_type:
            case ValueType.CUSTOM:
                cell = target if isinstance(target, Variable) else Variable()
                if not argument.binding(self.config, argument.display, token, cell):
                    raise self.trigger(InvalidValueError(
                        "invalid value %r for %s at %s position" % (token, _describe(argument), ordinal(index)),
                        token=token,
                        argument=argument,
                    ))
                value = cell.value
            case ValueType.CHOICE:
                if (value := argument.binding.match(token)) is None:
                    literals = [choice.value for choice in argument.binding]
                    suggestions = difflib.get_close_matches(token, literals, 1)
                    raise self.trigger(InvalidValueError(
                        "invalid choice %r for %s at %s position" % (token, _describe(argument), ordinal(index)),
                        token=token,
                        argument=argument,
                        hint=("did you mean %r?" % suggestions[0]) if suggestions else (
                            "expected one of: %s" % (", ".join(map(repr, literals)) or "nothing")
                        ),
                    ))
            case _:
                try:
                    value = value_type.verifier(token)
                except ValueError as error:
                    raise self.trigger(InvalidValueError(
                        "invalid value %r for %s at %s position: %s" % (token, _describe(argument), ordinal(index), error),
                        token=token,
                        argument=argument,
                    )) from None
                if value_type.storage == _STRING_STORAGE:
                    value = self.config.duplicate_string(value)

        if argument.is_list:
            target.append(value)
        elif target is not None:
            target.value = value

    def finish(self):
        for positional in self.layout.positionals[self.cursor:]:
            if positional.optional or (positional.is_list and self.counts[positional]):
                continue
            raise self.trigger(TooFewArgumentsError(
                "missing required %s after %s position" % (_describe(positional), ordinal(self.stream.index))
                if self.stream.index else
                "missing required %s" % _describe(positional),
                argument=positional,
                hint="run '%s --help' to see the expected usage" % self.config.route,
            ))


def parse(args, config, /):
    """
    parse an argv-like token list against a configuration.

    parameters
    - args: Sequence[str] | None | Unset
      args[0] is the program name and becomes config.name; None/Unset reads
      sys.argv.
    - config: Config
      the root configuration.

    returns
    - ParseResult. faults never escape: a failed parse returns a FAILED result
      whose config has its error/fault fields set (see raise_for_fault()).

    raises
    - TypeError: config is not a Config or args contains non-strings.
    """
    if not isinstance(config, Config):
        raise TypeError("parse() 'config' must be a config")

    args = list(sys.argv if args is None or args is Unset else args)
    for arg in args:
        if not isinstance(arg, str):
            raise TypeError("parse() 'args' must contain only strings")

    config.parent = None
    config.name = args[0] if args else None

    try:
        outcome, active = _Dispatcher(config, _Stream(args[1:]), True).run()
    except ParseFault as fault:
        failed = fault.config or config
        failed.error = fault.code
        failed.fault = fault
        return ParseResult(Outcome.FAILED, failed, fault)
    return ParseResult(outcome, active)


__all__ = (
    "Outcome",
    "ParseResult",
    "parse",
)
