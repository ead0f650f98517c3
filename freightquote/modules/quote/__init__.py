"""海运报价模块。"""

from .engine import QuoteEngine
from .factory import build_quote_engine, build_rate_cache
from .models import ContainerKind, Incoterm, QuoteBreakdown, ShipmentInput, ShipmentMode
from .tariff import DEFAULT_TARIFF, Tariff

__all__ = [
    "DEFAULT_TARIFF",
    "ContainerKind",
    "Incoterm",
    "QuoteBreakdown",
    "QuoteEngine",
    "ShipmentInput",
    "ShipmentMode",
    "Tariff",
    "build_quote_engine",
    "build_rate_cache",
]
