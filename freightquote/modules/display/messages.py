"""面向客户的文案映射：把内部结果/错误类型换成展示文案，不含任何计价逻辑。"""

from __future__ import annotations

from typing import Any

from freightquote.core.error_handler import (
    FreightQuoteError,
    ProviderUnavailable,
    UnsupportedCurrency,
    ValidationError,
)

CUSTOMER_MESSAGES: dict[str, str] = {
    "ok": "Your quote is ready.",
    "validation_error": "Some shipment details are missing or invalid. Please review the highlighted field.",
    "provider_unavailable": "Market data temporarily unavailable. Our team is working to restore service.",
    "unsupported_currency": "This currency is not available for quotes yet. Please choose another display currency.",
    "error": "We could not prepare your quote right now. Please try again shortly.",
}

RATE_SOURCE_LABELS: dict[str, str] = {
    "identity": "Priced in your currency",
    "cache": "Exchange rate updated within the last 24 hours",
    "provider": "Live exchange rate",
    "stale_cache": "Indicative exchange rate, refresh pending",
    "default": "Indicative price, exchange rate unavailable",
}

# 字段名 -> 客户可读名称
FIELD_LABELS: dict[str, str] = {
    "mode": "shipment type",
    "containerKind": "container type",
    "containerCount": "number of containers",
    "weightKg": "weight",
    "volumeCbm": "volume",
    "incoterm": "incoterms",
    "insured": "insurance",
    "declaredValue": "cargo value",
}

_ERROR_KINDS: tuple[tuple[type[Exception], str], ...] = (
    (ValidationError, "validation_error"),
    (ProviderUnavailable, "provider_unavailable"),
    (UnsupportedCurrency, "unsupported_currency"),
    (FreightQuoteError, "error"),
)


def outcome_kind(outcome: Any) -> str:
    if outcome is None:
        return "ok"
    if isinstance(outcome, str):
        return outcome if outcome in CUSTOMER_MESSAGES else "error"
    for exc_type, kind in _ERROR_KINDS:
        if isinstance(outcome, exc_type):
            return kind
    return "error"


def customer_message(outcome: Any = None) -> str:
    """outcome 可以是 None（成功）、结果类型字符串或异常实例。"""
    kind = outcome_kind(outcome)
    message = CUSTOMER_MESSAGES[kind]
    if kind == "validation_error":
        field = getattr(outcome, "field", "")
        label = FIELD_LABELS.get(field)
        if label:
            message = f"{message} ({label})"
    return message


def rate_source_label(lookup: Any) -> str:
    """lookup 可以是 RateLookup，也可以是换算后的 QuoteBreakdown。"""
    if getattr(lookup, "default_used", False) or getattr(lookup, "rate_default_used", False):
        return RATE_SOURCE_LABELS["default"]
    source = getattr(lookup, "source", None) or getattr(lookup, "rate_source", None)
    return RATE_SOURCE_LABELS.get(str(source or ""), RATE_SOURCE_LABELS["provider"])
