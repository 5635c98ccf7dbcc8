"""
Helper utilities
"""
from datetime import datetime
from typing import Any, Dict, Iterable


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def row_to_dict(row: Any, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Column values of an ORM row, with datetimes as ISO strings"""
    skip = set(exclude)
    data = {}
    for column in row.__table__.columns:
        if column.name in skip:
            continue
        value = getattr(row, column.name)
        data[column.name] = value.isoformat() if isinstance(value, datetime) else value
    return data
