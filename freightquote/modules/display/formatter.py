"""金额本地化展示。"""

from __future__ import annotations

import math
from typing import Any

from babel import Locale
from babel.core import UnknownLocaleError
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import is_currency

from freightquote.core.logger import get_logger
from freightquote.modules.quote.models import LINE_ITEMS, QuoteBreakdown

DEFAULT_LOCALE = "en_US"


def _fallback(amount: Any, code: str) -> str:
    try:
        return f"{code} {float(amount):.2f}"
    except (TypeError, ValueError, OverflowError):
        return f"{code} {amount}"


def format_currency(amount: float, currency_code: str, locale: str | None = None) -> str:
    """按区域设置格式化金额；任何失败都退回 "<CODE> <金额两位小数>"，不抛异常。"""
    code = str(currency_code or "").strip().upper()
    try:
        number = float(amount)
        if not math.isfinite(number):
            raise ValueError(f"non-finite amount {amount!r}")
        if not is_currency(code):
            raise ValueError(f"unknown currency {code!r}")
        parsed = Locale.parse(str(locale or DEFAULT_LOCALE).replace("-", "_"))
        return babel_format_currency(number, code, locale=parsed)
    except UnknownLocaleError as exc:
        get_logger().debug(f"Unknown locale {locale!r} for {code}: {exc}")
        return _fallback(amount, code)
    except Exception as exc:
        # 格式化异常时保底返回纯文本金额，避免中断报价展示
        get_logger().debug(f"Currency formatting fell back for {code}: {exc}")
        return _fallback(amount, code)


def format_breakdown(breakdown: QuoteBreakdown, locale: str | None = None) -> dict[str, str]:
    formatted = {
        wire: format_currency(getattr(breakdown, name), breakdown.currency, locale)
        for name, wire in LINE_ITEMS
    }
    formatted["total"] = format_currency(breakdown.total, breakdown.currency, locale)
    return formatted
