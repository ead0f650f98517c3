"""海运报价领域模型。"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

from freightquote.core.error_handler import ValidationError


class ShipmentMode(str, Enum):
    FCL = "FCL"
    LCL = "LCL"
    BREAK_BULK = "BreakBulk"


class ContainerKind(str, Enum):
    STANDARD_20 = "20ft-standard"
    STANDARD_40 = "40ft-standard"
    HIGH_CUBE_40 = "40ft-high-cube"


class Incoterm(str, Enum):
    FOB = "FOB"
    CIF = "CIF"
    CFR = "CFR"
    DAP = "DAP"
    DDP = "DDP"


# 订舱页面沿用的旧写法
_MODE_ALIASES = {
    "break bulk": ShipmentMode.BREAK_BULK,
    "break-bulk": ShipmentMode.BREAK_BULK,
    "breakbulk": ShipmentMode.BREAK_BULK,
    "fcl": ShipmentMode.FCL,
    "lcl": ShipmentMode.LCL,
}

_CONTAINER_ALIASES = {
    "20gp": ContainerKind.STANDARD_20,
    "20ft": ContainerKind.STANDARD_20,
    "40gp": ContainerKind.STANDARD_40,
    "40ft": ContainerKind.STANDARD_40,
    "40hc": ContainerKind.HIGH_CUBE_40,
}

# 对外字段名 -> 内部字段名
_FIELD_ALIASES = {
    "mode": "mode",
    "shipmentType": "mode",
    "containerKind": "container_kind",
    "containerType": "container_kind",
    "containerCount": "container_count",
    "containers": "container_count",
    "weightKg": "weight_kg",
    "volumeCbm": "volume_cbm",
    "incoterm": "incoterm",
    "incoterms": "incoterm",
    "insured": "insured",
    "insurance": "insured",
    "declaredValue": "declared_value",
    "cargoValue": "declared_value",
}


def _parse_enum(enum_cls: type[Enum], raw: Any, field: str, aliases: dict[str, Enum] | None = None) -> Enum:
    if isinstance(raw, enum_cls):
        return raw
    text = str(raw or "").strip()
    for member in enum_cls:
        if text == member.value or text.upper() == member.name:
            return member
    if aliases and text.lower() in aliases:
        return aliases[text.lower()]
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(field, f"must be one of {{{allowed}}}, got {raw!r}")


def _non_negative(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(field, f"must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f"must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValidationError(field, f"must be finite, got {value!r}")
    if number < 0:
        raise ValidationError(field, f"must be non-negative, got {value!r}")
    return number


@dataclass(slots=True)
class ShipmentInput:
    """报价请求：一票货的运输方式、箱型、重量体积与保险参数。

    incoterm 只做枚举校验，不参与计价。
    """

    mode: ShipmentMode | str
    container_kind: ContainerKind | str | None = None
    container_count: int | None = 1
    weight_kg: float = 0.0
    volume_cbm: float = 0.0
    incoterm: Incoterm | str = Incoterm.FOB
    insured: bool = False
    declared_value: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShipmentInput:
        """接受 camelCase / snake_case 字段，返回已校验的对象。"""
        if not isinstance(data, dict):
            raise ValidationError("shipment", "must be a JSON object")
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
        if "mode" not in kwargs:
            raise ValidationError("mode", "is required")
        return cls(**kwargs).validate()

    def validate(self) -> ShipmentInput:
        """校验并返回规范化后的副本；任何约束不满足即抛出 ValidationError。"""
        mode = _parse_enum(ShipmentMode, self.mode, "mode", _MODE_ALIASES)
        incoterm = _parse_enum(Incoterm, self.incoterm, "incoterm")

        container_kind = None
        container_count = 1
        if mode is ShipmentMode.FCL:
            if self.container_kind in (None, ""):
                raise ValidationError("containerKind", "is required when mode is FCL")
            container_kind = _parse_enum(ContainerKind, self.container_kind, "containerKind", _CONTAINER_ALIASES)
            raw_count = 1 if self.container_count is None else self.container_count
            if isinstance(raw_count, bool) or not isinstance(raw_count, int) or raw_count < 1:
                raise ValidationError("containerCount", f"must be a positive integer, got {raw_count!r}")
            container_count = raw_count

        weight_kg = _non_negative(self.weight_kg, "weightKg")
        volume_cbm = _non_negative(self.volume_cbm, "volumeCbm")

        if not isinstance(self.insured, bool):
            raise ValidationError("insured", f"must be a boolean, got {self.insured!r}")
        declared_value = None
        if self.insured:
            if self.declared_value is None:
                raise ValidationError("declaredValue", "is required when insured is true")
            declared_value = _non_negative(self.declared_value, "declaredValue")

        return replace(
            self,
            mode=mode,
            container_kind=container_kind,
            container_count=container_count,
            weight_kg=weight_kg,
            volume_cbm=volume_cbm,
            incoterm=incoterm,
            declared_value=declared_value,
        )

    def to_dict(self) -> dict[str, Any]:
        def _value(item: Any) -> Any:
            return item.value if isinstance(item, Enum) else item

        return {
            "mode": _value(self.mode),
            "containerKind": _value(self.container_kind),
            "containerCount": self.container_count,
            "weightKg": self.weight_kg,
            "volumeCbm": self.volume_cbm,
            "incoterm": _value(self.incoterm),
            "insured": self.insured,
            "declaredValue": self.declared_value,
        }


LINE_ITEMS: tuple[tuple[str, str], ...] = (
    ("freight_charge", "freightCharge"),
    ("origin_handling", "originHandling"),
    ("destination_handling", "destinationHandling"),
    ("surcharge", "surcharge"),
    ("insurance_premium", "insurancePremium"),
    ("documentation_fee", "documentationFee"),
)


@dataclass(frozen=True, slots=True)
class QuoteBreakdown:
    """分项报价。total 为六个分项之和；换币种时生成新对象。"""

    freight_charge: float
    origin_handling: float
    destination_handling: float
    surcharge: float
    insurance_premium: float
    documentation_fee: float
    total: float
    currency: str = "USD"
    # 换算后填写：汇率来源，以及是否因缺少汇率按 1.0 换算
    rate_source: str | None = None
    rate_default_used: bool = False

    def line_items(self) -> list[tuple[str, float]]:
        return [(name, getattr(self, name)) for name, _ in LINE_ITEMS]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {wire: getattr(self, name) for name, wire in LINE_ITEMS}
        data["total"] = self.total
        data["currency"] = self.currency
        data["rateSource"] = self.rate_source
        data["rateDefaultUsed"] = self.rate_default_used
        return data
