"""Parse and format duration literals such as ``5m``, ``1h30m`` or ``500ms``."""

import re
from datetime import timedelta

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """Parse a duration literal into a timedelta.

    A literal is an optional sign followed by one or more decimal numbers,
    each with a unit suffix (ns, us, ms, s, m, h). ``"0"`` is also accepted.

    Args:
        value: Duration literal (e.g., "1h30m", "30s", "1.5h")

    Returns:
        Parsed duration

    Raises:
        ValueError: If the literal is empty or malformed

    """
    text = value.strip()
    if not text:
        raise ValueError("invalid duration: empty string")

    sign = 1.0
    if text[0] in "+-":
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return timedelta(0)

    position = 0
    total = 0.0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        position = match.end()

    if position == 0:
        raise ValueError(f"invalid duration: {value!r}")

    return timedelta(seconds=sign * total)


def format_duration(duration: timedelta, precision: int = 2) -> str:
    """Format a duration for display.

    Sub-second values are shown in milliseconds, sub-minute values in seconds
    with ``precision`` decimals, sub-hour values as minutes and whole seconds,
    anything longer as hours, minutes and seconds.
    """
    seconds = duration.total_seconds()
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.{precision}f}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m{int(seconds) % 60}s"

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    secs_text = f"{secs:.6f}".rstrip("0").rstrip(".")
    return f"{int(hours)}h{int(minutes)}m{secs_text}s"
