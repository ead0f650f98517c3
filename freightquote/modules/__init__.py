"""
功能模块
Modules

汇率缓存、报价引擎与展示
"""

from .fx.cache import RateCache
from .quote.engine import QuoteEngine

__all__ = [
    "QuoteEngine",
    "RateCache",
]
