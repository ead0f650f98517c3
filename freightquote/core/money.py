"""
金额取整工具
Money Helpers

报价、换算与展示共用同一套四舍五入（ROUND_HALF_UP）规则
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_UNIT = Decimal("1")


def round_half_up(value: float, places: int = 2) -> float:
    """按十进制四舍五入，避免 round() 的银行家舍入。"""
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite amount: {value!r}")
    quantum = _UNIT if places == 0 else Decimal(1).scaleb(-places)
    try:
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ValueError(f"cannot round amount: {value!r}") from exc


def round2(value: float) -> float:
    return round_half_up(value, places=2)


def round_unit(value: float) -> float:
    """取整到货币整单位。"""
    return round_half_up(value, places=0)
