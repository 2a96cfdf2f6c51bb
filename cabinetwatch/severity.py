"""Severity scale operations and display helpers."""

from collections.abc import Iterable

from .exceptions import EmptyAggregationError
from .models import Severity


def compare(a: Severity, b: Severity) -> int:
    """Three-way comparison of two severities by rank.

    Returns:
        -1 if a is less severe than b, 0 if equal, 1 if more severe.
    """
    return (a.rank > b.rank) - (a.rank < b.rank)


def join(a: Severity, b: Severity) -> Severity:
    """Return the more severe of two severities."""
    return a if a.rank >= b.rank else b


def join_all(severities: Iterable[Severity], what: str = "severities") -> Severity:
    """Fold join over a sequence of severities.

    Args:
        severities: Severities to combine.
        what: Description of the input, used in the error message.

    Returns:
        Highest severity found.

    Raises:
        EmptyAggregationError: If there is nothing to fold.
    """
    iterator = iter(severities)
    try:
        overall = next(iterator)
    except StopIteration:
        raise EmptyAggregationError(what) from None

    for severity in iterator:
        overall = join(overall, severity)
    return overall


def get_severity_label(severity: Severity) -> str:
    """Human-readable label for a severity level."""
    return severity.value.capitalize()


def get_severity_emoji(severity: Severity) -> str:
    """Get an emoji representation for a severity level."""
    return {
        Severity.CRITICAL: "🔴",
        Severity.WARNING: "🟠",
        Severity.CAUTION: "🟡",
        Severity.NORMAL: "🟢",
    }.get(severity, "⚪")


def get_severity_color(severity: Severity) -> str:
    """Get a Rich color name for a severity level.

    Args:
        severity: Severity level.

    Returns:
        Rich color name.
    """
    return {
        Severity.CRITICAL: "red",
        Severity.WARNING: "dark_orange",
        Severity.CAUTION: "yellow",
        Severity.NORMAL: "green",
    }.get(severity, "white")


def get_leak_icon(has_leak: bool) -> str:
    """Icon for the leak detector state."""
    return "💧" if has_leak else ""


def severity_to_css_class(severity: Severity) -> str:
    """Convert severity to a CSS class name for the web UI.

    Args:
        severity: Severity level.

    Returns:
        CSS class name.
    """
    return {
        Severity.CRITICAL: "severity-critical",
        Severity.WARNING: "severity-warning",
        Severity.CAUTION: "severity-caution",
        Severity.NORMAL: "severity-normal",
    }.get(severity, "severity-unknown")
