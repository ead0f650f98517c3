"""按配置装配 RateCache 与 QuoteEngine。"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from freightquote.core.config import Config
from freightquote.modules.fx.cache import RateCache
from freightquote.modules.fx.providers import HttpRateProvider, IRateProvider
from freightquote.modules.fx.store import InMemoryRateStore, IRateStore, SqliteRateStore
from freightquote.modules.quote.engine import QuoteEngine
from freightquote.modules.quote.tariff import Tariff


def build_rate_store(fx_cfg: dict[str, Any]) -> IRateStore:
    if str(fx_cfg.get("store", "memory")).lower() == "sqlite":
        return SqliteRateStore(db_path=str(fx_cfg.get("store_path", "data/fx_rates.db")))
    return InMemoryRateStore()


def build_rate_cache(fx_cfg: dict[str, Any], provider: IRateProvider | None = None) -> RateCache:
    if provider is None:
        provider = HttpRateProvider(
            base_url=str(fx_cfg.get("provider_url", "https://api.exchangerate.host")),
            timeout_seconds=float(fx_cfg.get("timeout_seconds", 5.0)),
            api_key_env=str(fx_cfg.get("api_key_env", "")),
        )
    return RateCache(
        provider,
        build_rate_store(fx_cfg),
        freshness_window=timedelta(hours=float(fx_cfg.get("freshness_hours", 24.0))),
        best_effort=bool(fx_cfg.get("best_effort", False)),
        allow_unknown_default=bool(fx_cfg.get("allow_unknown_default", False)),
    )


def build_quote_engine(config: Config, provider: IRateProvider | None = None) -> QuoteEngine:
    """每次调用都新建一个 RateCache，由返回的引擎独占。"""
    pricing_cfg = config.get_section("pricing", {})
    return QuoteEngine(
        build_rate_cache(config.get_section("fx", {}), provider=provider),
        tariff=Tariff.from_config(pricing_cfg),
        computation_currency=str(pricing_cfg.get("computation_currency", "USD")),
    )
