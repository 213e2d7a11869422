"""
Clags leveled logging.

Every configuration owns its minimum level and an optional handler; this
module holds the level order, the default handler and the filter that both
the engine and user verifiers go through (via Config.log).

Levels
- INFO < WARNING < ERROR < CONFIG_WARNING < CONFIG_ERROR < NO_LOGS
- Parse failures are logged at ERROR; violated definition invariants at
  CONFIG_WARNING / CONFIG_ERROR. NO_LOGS as a minimum silences everything.

Handlers
- Any callable handler(level, message). The default writes one
  level-prefixed line to stderr through a rich console; user tokens are
  wrapped in Text so brackets in them are never read as markup.
"""
from enum import IntEnum

from rich.console import Console
from rich.text import Text

console = Console(stderr=True)


class LogLevel(IntEnum):
    INFO           = 0
    WARNING        = 1
    ERROR          = 2
    CONFIG_WARNING = 3
    CONFIG_ERROR   = 4
    NO_LOGS        = 5

    @property
    def prefix(self):
        """
        the bracketed tag the default handler prints in front of a message.
        """
        return "[%s]" % self.name.replace("_", " ")


_STYLES = {
    LogLevel.INFO: "bold #9CE19C",
    LogLevel.WARNING: "bold #FFB400",
    LogLevel.ERROR: "bold #FF4DA6",
    LogLevel.CONFIG_WARNING: "bold #FFC2E0",
    LogLevel.CONFIG_ERROR: "bold #FF4D4D",
}


def default_handler(level, message, /):
    """
    write a level-prefixed line to stderr.

    NO_LOGS is never delivered here (emit() filters it), but a direct call is
    tolerated and ignored.
    """
    if level is LogLevel.NO_LOGS:
        return
    console.print(Text.assemble((level.prefix, _STYLES[level]), " ", message), soft_wrap=True, highlight=False)


def emit(handler, minimum, level, message, /, *args):
    """
    deliver a printf-style message if level passes the minimum.

    parameters
    - handler: callable(level, message) | None
      None selects default_handler.
    - minimum: LogLevel
      messages strictly below are dropped; NO_LOGS drops everything.
    - level: LogLevel
      level of this message; NO_LOGS messages are never delivered.
    - message, *args: formatted with '%' only when delivered.

    returns
    - True when the message was handed to a handler, False otherwise.
    """
    level = LogLevel(level)
    minimum = LogLevel(minimum)
    if level is LogLevel.NO_LOGS or minimum is LogLevel.NO_LOGS or level < minimum:
        return False
    if args:
        message = message % args
    (handler or default_handler)(level, message)
    return True


__all__ = (
    "LogLevel",
    "default_handler",
    "emit",
)
