"""报价展示模块。"""

from .formatter import format_breakdown, format_currency
from .messages import customer_message, rate_source_label

__all__ = [
    "customer_message",
    "format_breakdown",
    "format_currency",
    "rate_source_label",
]
