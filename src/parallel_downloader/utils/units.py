"""Human-readable size and duration formatting."""

BINARY_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]


def format_binary_bytes(size_bytes: int) -> str:
    """Format a byte count with binary (1024-based) prefixes.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string, e.g. ``"512 B"`` or ``"1.50 KiB"``
    """
    if size_bytes <= 0:
        return "0 B"

    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(BINARY_UNITS) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {BINARY_UNITS[unit_index]}"
    return f"{size:.2f} {BINARY_UNITS[unit_index]}"


def format_elapsed(seconds: float, precision: float = 0.001) -> str:
    """Format a duration rounded to ``precision`` seconds.

    Sub-second values print as milliseconds (``"50ms"``), longer ones as
    hours/minutes/seconds (``"1.25s"``, ``"2m3s"``, ``"1h0m5s"``).

    Args:
        seconds: Duration in seconds
        precision: Rounding granularity in seconds (0.001 for ms, 1 for s)

    Returns:
        Formatted duration string
    """
    if precision <= 0:
        raise ValueError("precision must be positive")

    steps = round(seconds / precision)
    if steps <= 0:
        return "0s"

    total_ms = int(round(steps * precision * 1000))
    if total_ms < 1000:
        return f"{total_ms}ms"

    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs = f"{remainder / 1000:.3f}".rstrip("0").rstrip(".")

    result = ""
    if hours:
        result += f"{hours}h"
    if hours or minutes:
        result += f"{minutes}m"
    return f"{result}{secs}s"


def format_number(number: int) -> str:
    """Format number with thousands separator.

    Args:
        number: Number to format

    Returns:
        Formatted number string
    """
    return f"{number:,}"
