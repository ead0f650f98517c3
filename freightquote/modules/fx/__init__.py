"""汇率缓存模块。"""

from .cache import DEFAULT_FRESHNESS_WINDOW, RateCache
from .models import RateLookup, RateTable
from .providers import (
    HttpRateProvider,
    IRateProvider,
    RateProviderError,
    StaticRateProvider,
)
from .store import InMemoryRateStore, IRateStore, SqliteRateStore, rate_cache_key

__all__ = [
    "DEFAULT_FRESHNESS_WINDOW",
    "HttpRateProvider",
    "IRateProvider",
    "IRateStore",
    "InMemoryRateStore",
    "RateCache",
    "RateLookup",
    "RateProviderError",
    "RateTable",
    "SqliteRateStore",
    "StaticRateProvider",
    "rate_cache_key",
]
