import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Literal, Optional

from eventtimer.exceptions import ConfigError

if TYPE_CHECKING:
    from logging import LogRecord

    from eventtimer.timer import EventTimer
    from eventtimer.types import LogSink


class Colors:
    """ANSI color codes for terminal coloring."""

    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    RED_BG = "\033[41m"
    WHITE = "\033[37m"


class ColoredFormatter(logging.Formatter):
    """
    Formatter coloring the level, the logger name and the message prefix.
    """

    LEVEL_COLORS = {
        "DEBUG": Colors.CYAN,
        "INFO": Colors.GREEN,
        "WARNING": Colors.YELLOW,
        "ERROR": Colors.RED,
        "CRITICAL": f"{Colors.WHITE}{Colors.RED_BG}",
    }

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
        validate: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style, validate=validate)

    def format(self, record: "LogRecord") -> str:
        levelname = record.levelname
        name = record.name
        msg = record.msg

        if color := self.LEVEL_COLORS.get(levelname):
            record.levelname = f"{color}{levelname:<8}{Colors.RESET}"
            record.name = f"{Colors.BLUE}{name}{Colors.RESET}"
            # Only the "[timer: ...]" prefix added by the adapter gets highlighted
            if isinstance(msg, str) and msg.startswith("[") and "]" in msg:
                closing_bracket = msg.find("]")
                record.msg = (
                    f"{color}{msg[: closing_bracket + 1]}{Colors.RESET}"
                    f"{msg[closing_bracket + 1 :]}"
                )

        try:
            return super().format(record)
        finally:
            record.levelname = levelname
            record.name = name
            record.msg = msg


def create_logger(timer: "EventTimer") -> logging.Logger:
    """
    Creates the logger of a timer, with timestamps and optional colors.

    :param EventTimer timer: The timer for which the logger is created.
    :return: The created logger.
    :raises ConfigError: If the logging level is invalid.
    """
    logger = logging.getLogger(f"eventtimer.{timer.timer_id}")

    handler = logging.StreamHandler()
    if timer.conf.log_use_colors:
        formatter: logging.Formatter = ColoredFormatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)

    # A new timer with the same id must not inherit the sink of a previous one
    logger.handlers = [handler]

    if level_name := timer.conf.logging_level:
        numeric_level = getattr(logging, str(level_name).upper(), None)
        if not isinstance(numeric_level, int):
            raise ConfigError(f"Invalid log level: {level_name}")
        logger.setLevel(numeric_level)

    logger.propagate = False
    return logger


class TimerLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter adding the timer context to log messages.

    :param logging.Logger logger: The logger instance.
    :param str timer_id: The ID of the timer.
    """

    def __init__(self, logger: logging.Logger, timer_id: str):
        super().__init__(logger, {})
        self.timer_id = timer_id

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple:
        return f"[timer: {self.timer_id}] {msg}", kwargs


class CallbackLogHandler(logging.Handler):
    """
    Handler forwarding log messages to a user supplied callable.

    The callable receives the bare message text. Errors raised by it are
    reported through ``logging.Handler.handleError`` and never reach the timer.

    :param LogSink sink: One argument callable receiving each message.
    """

    def __init__(self, sink: "LogSink", level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: "LogRecord") -> None:
        try:
            self.sink(record.getMessage())
        except Exception:
            self.handleError(record)


def set_log_sink(logger: logging.Logger, sink: Optional["LogSink"]) -> None:
    """
    Replaces the user log sink of a logger.

    :param logging.Logger logger: The timer logger.
    :param Optional[LogSink] sink: The new sink, None removes the current one.
    """
    for handler in [h for h in logger.handlers if isinstance(h, CallbackLogHandler)]:
        logger.removeHandler(handler)
    if sink is not None:
        logger.addHandler(CallbackLogHandler(sink))
