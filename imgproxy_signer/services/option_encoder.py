"""
Processing option encoding.

Every imgproxy processing option is a command mnemonic followed by colon
separated arguments, e.g. ``rs:fit:300:400:0``. The helpers here render those
tokens; they do not validate anything beyond what the predicates below check
when a caller asks them to.
"""

import re
from enum import Enum
from typing import Any, Tuple

HEXCOLOR_PATTERN = re.compile(r"[0-9A-Fa-f]{6}")

OPTION_SEPARATOR = ":"


def format_argument(arg: Any) -> str:
    """Render a single option argument.

    bool must be tested before int since it is an int subclass.
    """
    if arg is None:
        # An empty argument tells imgproxy to use its default
        return ""
    if isinstance(arg, bool):
        return "1" if arg else "0"
    if isinstance(arg, Enum):
        return str(arg.value)
    return str(arg)


def processing_option(command: str, *args: Any) -> str:
    """Build one processing option token from a command and its arguments.

    Args:
        command: Option mnemonic such as ``s``, ``rs`` or ``wm``
        *args: Arguments appended in order, each prefixed by ``:``

    Returns:
        The token, e.g. ``processing_option("test", "one", 1, True)`` gives
        ``test:one:1:1``
    """
    parts = [command]
    parts.extend(format_argument(arg) for arg in args)
    return OPTION_SEPARATOR.join(parts)


def trailing_args(*args: Any) -> Tuple[Any, ...]:
    """Drop trailing ``None`` arguments so omitted optionals are not rendered."""
    end = len(args)
    while end > 0 and args[end - 1] is None:
        end -= 1
    return args[:end]


def is_byte(value: int) -> bool:
    return 0 <= value <= 255


def is_hex_color(value: str) -> bool:
    return HEXCOLOR_PATTERN.fullmatch(value) is not None


def is_quality(percentage: int) -> bool:
    return 1 <= percentage <= 100
