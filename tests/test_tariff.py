"""费率表配置测试。"""

import pytest

from freightquote.core.error_handler import ConfigError
from freightquote.modules.quote.models import ContainerKind
from freightquote.modules.quote.tariff import DEFAULT_TARIFF, Tariff


def test_from_config_without_overrides_matches_defaults() -> None:
    assert Tariff.from_config(None) == DEFAULT_TARIFF
    assert Tariff.from_config({}) == DEFAULT_TARIFF


def test_from_config_applies_overrides() -> None:
    tariff = Tariff.from_config(
        {
            "container_rates": {"20ft-standard": 1500},
            "overrides": {"documentation_fee": 50, "minimum_premium": 20},
        }
    )

    assert tariff.container_rate(ContainerKind.STANDARD_20) == 1500
    assert tariff.container_rate(ContainerKind.HIGH_CUBE_40) == 2300
    assert tariff.documentation_fee == 50
    assert tariff.minimum_premium == 20
    assert DEFAULT_TARIFF.container_rate(ContainerKind.STANDARD_20) == 1600


@pytest.mark.parametrize(
    "pricing_cfg",
    [
        {"overrides": {"fuel_rate": 0.3}},
        {"container_rates": {"53ft-domestic": 3000}},
        {"container_rates": {"40ft-high-cube": 2000}},
    ],
)
def test_from_config_rejects_invalid_values(pricing_cfg) -> None:
    with pytest.raises(ConfigError):
        Tariff.from_config(pricing_cfg)
