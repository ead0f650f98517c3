"""汇率缓存：按基准币种缓存整张汇率表，24 小时有效，同一 base 的并发刷新合并为一次请求。"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from freightquote.core.error_handler import ProviderUnavailable, UnsupportedCurrency, ValidationError
from freightquote.core.logger import get_logger
from freightquote.core.money import round2
from freightquote.modules.fx.models import RateLookup, RateTable, normalize_code
from freightquote.modules.fx.providers import IRateProvider, RateProviderError
from freightquote.modules.fx.store import InMemoryRateStore, IRateStore, rate_cache_key

DEFAULT_FRESHNESS_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateCache:
    """按 base 缓存汇率表。

    - base == target 直接返回 1.0，不读存储、不发请求；
    - 表存在、未过期且包含 target 时命中缓存，否则刷新整张表（后写覆盖，不合并）；
    - 刷新失败默认抛出 ProviderUnavailable，best_effort 模式下才回退到过期汇率；
    - 刷新成功但缺少 target 时默认抛出 UnsupportedCurrency，
      allow_unknown_default 模式下按 1.0 换算并在结果中标记 default_used。
    """

    def __init__(
        self,
        provider: IRateProvider,
        store: IRateStore | None = None,
        *,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        best_effort: bool = False,
        allow_unknown_default: bool = False,
        clock: Callable[[], datetime] | None = None,
    ):
        self.provider = provider
        self.store = store if store is not None else InMemoryRateStore()
        self.freshness_window = freshness_window
        self.best_effort = best_effort
        self.allow_unknown_default = allow_unknown_default
        self.logger = get_logger()
        self._clock = clock or _utcnow
        self._inflight: dict[str, asyncio.Task[RateTable]] = {}

    async def get_rate(self, base: str, target: str) -> float:
        lookup = await self.lookup(base, target)
        return lookup.factor

    async def lookup(self, base: str, target: str) -> RateLookup:
        base_code = _require_code(base, "baseCurrency")
        target_code = _require_code(target, "targetCurrency")
        if base_code == target_code:
            return RateLookup(base=base_code, target=target_code, factor=1.0, source="identity")

        stored = self._load(base_code)
        if stored is not None and stored.is_fresh(self._clock(), self.freshness_window):
            factor = stored.factor(target_code)
            if factor is not None:
                return RateLookup(
                    base=base_code,
                    target=target_code,
                    factor=factor,
                    source="cache",
                    fetched_at=stored.fetched_at,
                )

        try:
            table = await self.fetch_rates(base_code, [target_code])
        except RateProviderError as exc:
            return self._stale_fallback(base_code, target_code, stored, exc)

        factor = table.factor(target_code)
        if factor is None:
            return self._unknown_target(base_code, target_code, table)
        return RateLookup(
            base=base_code,
            target=target_code,
            factor=factor,
            source="provider",
            fetched_at=table.fetched_at,
        )

    async def fetch_rates(self, base: str, symbols: list[str] | None = None) -> RateTable:
        """无条件刷新 base 的汇率表；同一 base 同时只有一个在途请求。"""
        base_code = _require_code(base, "baseCurrency")
        wanted = [code for code in (normalize_code(s) for s in symbols or []) if code and code != base_code]

        while True:
            task = self._inflight.get(base_code)
            if task is None:
                task = asyncio.create_task(self._refresh(base_code, wanted))
                self._inflight[base_code] = task
                return await asyncio.shield(task)

            self.logger.debug(f"FX refresh for {base_code} already in flight, joining")
            table = await asyncio.shield(task)
            if all(table.factor(code) is not None for code in wanted):
                return table
            # 在途请求按别的 symbols 发起，缺的币种再单独刷新一次

    async def prefetch(self, base: str, targets: list[str]) -> RateTable:
        """一次请求刷新多个目标币种，避免同一 base 反复覆盖。"""
        return await self.fetch_rates(base, targets)

    def cached_table(self, base: str) -> RateTable | None:
        """返回未过期的缓存表，过期或不存在时返回 None。"""
        table = self._load(normalize_code(base))
        if table is None or not table.is_fresh(self._clock(), self.freshness_window):
            return None
        return table

    async def convert_amount(self, amount: float, source: str, target: str) -> float:
        factor = await self.get_rate(source, target)
        return round2(float(amount) * factor)

    async def health_check(self) -> dict[str, Any]:
        return {
            "provider": await self.provider.health_check(),
            "cached_bases": [key.removeprefix("fx_") for key in self.store.keys()],
            "inflight": sorted(self._inflight),
            "freshness_hours": self.freshness_window.total_seconds() / 3600,
        }

    async def _refresh(self, base_code: str, symbols: list[str]) -> RateTable:
        try:
            payload = await self.provider.fetch_latest(base_code, symbols or None)
            if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
                raise RateProviderError(f"Malformed FX payload for base {base_code}")
            table = RateTable.from_provider_payload(payload, base=base_code, fetched_at=self._clock())
            if table.base != base_code:
                raise RateProviderError(f"FX payload base {table.base} does not match requested {base_code}")
            self._save(table)
            self.logger.info(f"FX table refreshed for {base_code}: {len(table.rates)} rates")
            return table
        finally:
            if self._inflight.get(base_code) is asyncio.current_task():
                self._inflight.pop(base_code, None)

    def _load(self, base_code: str) -> RateTable | None:
        key = rate_cache_key(base_code)
        try:
            payload = self.store.get(key)
            if payload is None:
                return None
            return RateTable.from_dict(payload)
        except Exception as exc:
            self.logger.warning(f"Ignoring unreadable FX cache entry {key}: {exc}")
            return None

    def _save(self, table: RateTable) -> None:
        key = rate_cache_key(table.base)
        try:
            self.store.put(key, table.to_dict())
        except Exception as exc:
            # 存储失败不影响本次结果，下次查询会重新拉取
            self.logger.warning(f"Failed to store FX table {key}: {exc}")

    def _stale_fallback(
        self,
        base_code: str,
        target_code: str,
        stored: RateTable | None,
        error: RateProviderError,
    ) -> RateLookup:
        stale_factor = stored.factor(target_code) if stored is not None else None
        if self.best_effort and stale_factor is not None:
            self.logger.warning(
                f"FX refresh for {base_code} failed ({error}); using stale rate from {stored.fetched_at.isoformat()}"
            )
            return RateLookup(
                base=base_code,
                target=target_code,
                factor=stale_factor,
                source="stale_cache",
                fetched_at=stored.fetched_at,
            )
        self.logger.error(f"FX refresh for {base_code} failed: {error}")
        raise ProviderUnavailable(base_code, str(error)) from error

    def _unknown_target(self, base_code: str, target_code: str, table: RateTable) -> RateLookup:
        if not self.allow_unknown_default:
            self.logger.warning(f"FX table for {base_code} has no rate for {target_code}")
            raise UnsupportedCurrency(base_code, target_code)
        self.logger.warning(f"FX table for {base_code} has no rate for {target_code}; defaulting factor to 1.0")
        return RateLookup(
            base=base_code,
            target=target_code,
            factor=1.0,
            source="provider",
            default_used=True,
            fetched_at=table.fetched_at,
        )


def _require_code(code: str, field: str) -> str:
    normalized = normalize_code(code)
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValidationError(field, f"must be a 3-letter ISO-4217 code, got {code!r}")
    return normalized
