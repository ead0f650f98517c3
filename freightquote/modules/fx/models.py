"""汇率领域模型。"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any


def normalize_code(code: str) -> str:
    return str(code or "").strip().upper()


@dataclass(frozen=True, slots=True)
class RateTable:
    """某一基准币种的整张汇率表（1 单位 base 可兑换的目标币种数量）。

    base 自身不存入 rates，`factor(base)` 恒为 1.0。刷新时整表替换，从不合并。
    """

    base: str
    fetched_at: datetime
    rates: dict[str, float] = field(default_factory=dict)

    def is_fresh(self, now: datetime, window: timedelta) -> bool:
        return now - self.fetched_at < window

    def factor(self, target: str) -> float | None:
        code = normalize_code(target)
        if code == self.base:
            return 1.0
        return self.rates.get(code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "updatedAt": self.fetched_at.isoformat(),
            "base": self.base,
            "rates": dict(self.rates),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RateTable:
        """从存储载荷还原；字段缺失或格式错误时抛出 ValueError。"""
        if not isinstance(data, dict):
            raise ValueError("rate table payload must be a mapping")
        base = normalize_code(data.get("base", ""))
        if not base:
            raise ValueError("rate table payload missing base")
        raw_ts = data.get("updatedAt")
        if not raw_ts:
            raise ValueError("rate table payload missing updatedAt")
        fetched_at = datetime.fromisoformat(str(raw_ts))
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=UTC)
        return cls(base=base, fetched_at=fetched_at, rates=parse_rates(data.get("rates"), base=base))

    @classmethod
    def from_provider_payload(cls, payload: dict[str, Any], *, base: str, fetched_at: datetime) -> RateTable:
        """由汇率源响应构建新表；响应缺少 base 时沿用请求的 base。"""
        resolved_base = normalize_code(payload.get("base") or base)
        return cls(base=resolved_base, fetched_at=fetched_at, rates=parse_rates(payload.get("rates"), base=resolved_base))


@dataclass(frozen=True, slots=True)
class RateLookup:
    """一次汇率查询的结果与来源。"""

    base: str
    target: str
    factor: float
    source: str = "cache"
    default_used: bool = False
    fetched_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base,
            "target": self.target,
            "factor": self.factor,
            "source": self.source,
            "default_used": self.default_used,
            "fetched_at": self.fetched_at.isoformat() if self.fetched_at else None,
        }


def parse_rates(raw: Any, *, base: str) -> dict[str, float]:
    """只保留正的有限数值；base 自身的条目丢弃。"""
    if not isinstance(raw, dict):
        return {}
    rates: dict[str, float] = {}
    for key, value in raw.items():
        code = normalize_code(key)
        if not code or code == base or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number) and number > 0:
            rates[code] = number
    return rates
