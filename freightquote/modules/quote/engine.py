"""海运报价引擎：分项计价 + 展示币种换算。"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from freightquote.core.error_handler import FreightQuoteError, ValidationError
from freightquote.core.logger import get_logger
from freightquote.core.money import round2, round_unit
from freightquote.modules.fx.cache import RateCache
from freightquote.modules.fx.models import RateLookup, normalize_code
from freightquote.modules.quote.models import LINE_ITEMS, QuoteBreakdown, ShipmentInput, ShipmentMode
from freightquote.modules.quote.tariff import DEFAULT_TARIFF, Tariff


class QuoteEngine:
    """海运报价引擎。

    `compute_breakdown` 是纯函数，只依赖入参与费率表；
    `convert` 通过构造时注入的 RateCache 换算币种，汇率错误原样向上抛出。
    """

    def __init__(
        self,
        rate_cache: RateCache | None = None,
        *,
        tariff: Tariff = DEFAULT_TARIFF,
        computation_currency: str = "USD",
    ):
        self.logger = get_logger()
        self.rate_cache = rate_cache
        self.tariff = tariff
        self.computation_currency = normalize_code(computation_currency)

    def compute_breakdown(self, shipment: ShipmentInput) -> QuoteBreakdown:
        shipment = shipment.validate()
        tariff = self.tariff
        is_fcl = shipment.mode is ShipmentMode.FCL

        if is_fcl:
            freight_charge = tariff.container_rate(shipment.container_kind) * max(1, shipment.container_count)
        else:
            freight_charge = max(
                tariff.floor_charge,
                tariff.volume_rate * shipment.volume_cbm + tariff.weight_rate * shipment.weight_kg,
            )

        # 起运港/目的港费用只区分整箱与否，与 incoterm 无关
        origin_handling = tariff.fcl_origin_handling if is_fcl else tariff.loose_origin_handling
        destination_handling = tariff.fcl_destination_handling if is_fcl else tariff.loose_destination_handling
        surcharge = round_unit(freight_charge * tariff.surcharge_rate)

        insurance_premium = 0.0
        if shipment.insured:
            insurance_premium = max(tariff.minimum_premium, shipment.declared_value * tariff.insurance_rate)

        documentation_fee = tariff.documentation_fee
        total = round_unit(
            freight_charge
            + origin_handling
            + destination_handling
            + surcharge
            + insurance_premium
            + documentation_fee
        )

        return QuoteBreakdown(
            freight_charge=freight_charge,
            origin_handling=origin_handling,
            destination_handling=destination_handling,
            surcharge=surcharge,
            insurance_premium=insurance_premium,
            documentation_fee=documentation_fee,
            total=total,
            currency=self.computation_currency,
        )

    async def convert(
        self,
        breakdown: QuoteBreakdown,
        target_currency: str,
        computation_currency: str | None = None,
    ) -> QuoteBreakdown:
        """按同一汇率换算全部分项与总价，逐项四舍五入到分。

        结果带上汇率来源；缺少汇率按 1.0 换算时 rate_default_used 为 True。
        """
        source = normalize_code(computation_currency or breakdown.currency)
        if source != normalize_code(breakdown.currency):
            raise ValidationError(
                "computationCurrency",
                f"{source} does not match breakdown currency {breakdown.currency}",
            )
        target = normalize_code(target_currency)

        if source == target:
            lookup = RateLookup(base=source, target=target, factor=1.0, source="identity")
        elif self.rate_cache is None:
            raise FreightQuoteError(
                f"Cannot convert {source}->{target}: no rate cache configured",
                details={"base": source, "target": target},
            )
        else:
            lookup = await self.rate_cache.lookup(source, target)
        factor = lookup.factor

        converted: dict[str, Any] = {
            name: round2(getattr(breakdown, name) * factor) for name, _ in LINE_ITEMS
        }
        return replace(
            breakdown,
            **converted,
            total=round2(breakdown.total * factor),
            currency=target,
            rate_source=lookup.source,
            rate_default_used=lookup.default_used,
        )

    async def quote(self, shipment: ShipmentInput, display_currency: str | None = None) -> QuoteBreakdown:
        breakdown = self.compute_breakdown(shipment)
        if not display_currency:
            return breakdown
        converted = await self.convert(breakdown, display_currency)
        self.logger.debug(
            f"Quote {breakdown.total:.2f} {breakdown.currency} -> {converted.total:.2f} {converted.currency}"
        )
        return converted
