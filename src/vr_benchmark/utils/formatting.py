"""Display formatting for run comparisons.

Shared by the CLI tables so runs and metrics always read the same way.
"""

from datetime import datetime
from typing import Optional


def format_timestamp(epoch_ms: int) -> str:
    """Epoch milliseconds as local date and time."""
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def format_value(value: float) -> str:
    """Compact number: large counters without decimals, small values with two."""
    if abs(value) >= 10_000:
        return f"{value:,.0f}"
    return f"{value:.2f}"


def percent_change(value: float, reference: float) -> Optional[float]:
    """Change relative to a reference, None when there is nothing to compare."""
    if reference == 0:
        return None
    return (value - reference) / abs(reference) * 100


def format_change(value: float, reference: float) -> str:
    """
    Rich-markup change versus a reference.

    Metrics here are costs (times, stalls), so going up is shown in red.
    """
    change = percent_change(value, reference)
    if change is None:
        return "[dim]-[/dim]"
    if abs(change) < 0.5:
        return f"[dim]{change:+.1f}%[/dim]"
    color = "red" if change > 0 else "green"
    return f"[{color}]{change:+.1f}%[/{color}]"


def format_result(result: bool) -> str:
    return "[green]PASS[/green]" if result else "[red]FAIL[/red]"
