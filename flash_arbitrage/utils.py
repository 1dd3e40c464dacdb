"""
Shared helpers for reports and console output: ISO timestamps, JSON that
keeps wei amounts exact, report files and human-readable amounts.
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

from .fixed_point import WEI_DECIMALS, bps_to_pct, format_units


def timestamp_to_iso(timestamp: float) -> str:
    """Unix seconds to an ISO 8601 UTC string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def safe_json_dump(data: Any, **kwargs) -> str:
    """
    Serialize report data to indented JSON.

    Python ints are written in full, so 18-decimal amounts never pass through
    a float. Values json cannot handle go through _json_default_handler.
    """
    options = {"ensure_ascii": False, "indent": 2, "default": _json_default_handler}
    options.update(kwargs)
    return json.dumps(data, **options)


def _json_default_handler(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if is_dataclass(obj):
        return asdict(obj)
    return str(obj)


def ensure_path_exists(path: Union[str, Path], is_file: bool = False) -> Path:
    """
    Create the directory at path, or its parent when is_file is set.

    Returns:
        path as a Path
    """
    target = Path(path)
    (target.parent if is_file else target).mkdir(parents=True, exist_ok=True)
    return target


def write_json_report(data: Any, path: Union[str, Path]) -> Path:
    """Write data as JSON, creating parent directories. Returns the path."""
    out = ensure_path_exists(path, is_file=True)
    out.write_text(safe_json_dump(data), encoding="utf-8")
    return out


def format_amount(
    amount: int, symbol: str = "", places: int = 6, decimals: int = WEI_DECIMALS
) -> str:
    """Base units to a fixed-place string. 706 * 10**15 -> '0.706000 ETH'"""
    text = f"{format_units(amount, decimals):.{places}f}"
    return f"{text} {symbol}" if symbol else text


def format_bps(bps_value: int) -> str:
    """150 -> '150 bps (1.50%)'"""
    return f"{bps_value} bps ({bps_to_pct(bps_value):.2f}%)"
