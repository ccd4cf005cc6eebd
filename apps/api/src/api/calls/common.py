"""Helpers shared by the call routers."""

from collections.abc import Iterable


def average(values: Iterable[float | None], digits: int = 0) -> float | int:
    """Mean of the non-null values, 0 when there are none."""
    scored = [float(v) for v in values if v is not None]
    if not scored:
        return 0
    mean = sum(scored) / len(scored)
    return round(mean) if digits == 0 else round(mean, digits)


def count_by(values: Iterable[str | None], keys: Iterable[str]) -> dict[str, int]:
    """Count occurrences of each key, including keys never seen."""
    values = list(values)
    return {key: values.count(key) for key in keys}
