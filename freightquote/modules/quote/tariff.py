"""海运费率表。"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from freightquote.core.error_handler import ConfigError
from freightquote.modules.quote.models import ContainerKind


def _default_container_rates() -> dict[ContainerKind, float]:
    return {
        ContainerKind.STANDARD_20: 1600.0,
        ContainerKind.STANDARD_40: 2100.0,
        ContainerKind.HIGH_CUBE_40: 2300.0,
    }


@dataclass(frozen=True, slots=True)
class Tariff:
    """计价常量，金额均以计价币种表示。"""

    container_rates: dict[ContainerKind, float] = field(default_factory=_default_container_rates)
    floor_charge: float = 300.0
    volume_rate: float = 80.0
    weight_rate: float = 0.1
    fcl_origin_handling: float = 350.0
    fcl_destination_handling: float = 400.0
    loose_origin_handling: float = 120.0
    loose_destination_handling: float = 150.0
    surcharge_rate: float = 0.12
    insurance_rate: float = 0.005
    minimum_premium: float = 15.0
    documentation_fee: float = 45.0

    def container_rate(self, kind: ContainerKind) -> float:
        return self.container_rates[kind]

    @classmethod
    def from_config(cls, pricing_cfg: dict[str, Any] | None) -> Tariff:
        """按 pricing 配置段覆盖默认费率；未知键或高箱价低于普箱时报错。"""
        cfg = pricing_cfg or {}
        tariff = cls()

        container_rates = dict(tariff.container_rates)
        for key, value in (cfg.get("container_rates") or {}).items():
            try:
                kind = ContainerKind(str(key))
            except ValueError:
                raise ConfigError(f"Unknown container kind in pricing.container_rates: {key}") from None
            container_rates[kind] = float(value)

        scalar_names = {f.name for f in fields(cls)} - {"container_rates"}
        overrides: dict[str, float] = {}
        for key, value in (cfg.get("overrides") or {}).items():
            if key not in scalar_names:
                raise ConfigError(f"Unknown pricing override: {key}")
            overrides[key] = float(value)

        result = replace(tariff, container_rates=container_rates, **overrides)
        rates = result.container_rates
        if not (
            rates[ContainerKind.HIGH_CUBE_40]
            > rates[ContainerKind.STANDARD_40]
            > rates[ContainerKind.STANDARD_20]
        ):
            raise ConfigError("Container rates must satisfy 40ft-high-cube > 40ft-standard > 20ft-standard")
        return result


DEFAULT_TARIFF = Tariff()
