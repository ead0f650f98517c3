"""
测试工具和fixtures
Test Utilities and Fixtures
"""

import asyncio
import os
import sys
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

# 测试期间不写日志文件
os.environ.setdefault("FQ_LOGS_DIR", "")

from freightquote.core.config import Config, get_config
from freightquote.modules.fx.cache import RateCache
from freightquote.modules.fx.providers import IRateProvider, RateProviderError
from freightquote.modules.fx.store import InMemoryRateStore


class FrozenClock:
    """可手动推进的时钟"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 8, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeRateProvider(IRateProvider):
    """记录调用次数的汇率源，可阻塞、可失败、可只返回请求的币种"""

    def __init__(
        self,
        tables: dict[str, dict[str, float]] | None = None,
        *,
        gate: asyncio.Event | None = None,
        restrict_symbols: bool = False,
    ):
        self.tables = tables if tables is not None else {"USD": {"EUR": 0.9, "GBP": 0.8, "CNY": 7.2}}
        self.gate = gate
        self.restrict_symbols = restrict_symbols
        self.fail_with: Exception | None = None
        self.calls: list[tuple[str, list[str]]] = []

    async def fetch_latest(self, base: str, symbols: list[str] | None = None) -> dict[str, Any]:
        self.calls.append((base, list(symbols or [])))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        if base not in self.tables:
            raise RateProviderError(f"unknown base {base}")
        rates = dict(self.tables[base])
        if self.restrict_symbols and symbols:
            rates = {code: rate for code, rate in rates.items() if code in symbols}
        return {"base": base, "rates": rates}

    async def health_check(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def reset_config():
    """每个测试重新加载配置单例"""
    Config._instance = None
    get_config.cache_clear()
    yield
    Config._instance = None
    get_config.cache_clear()


@pytest.fixture
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def fake_provider():
    return FakeRateProvider()


@pytest.fixture
def rate_cache(fake_provider, clock):
    """每个测试独占一个内存汇率缓存"""
    return RateCache(fake_provider, InMemoryRateStore(), clock=clock)


@pytest.fixture
def temp_config_file(temp_dir):
    """创建临时配置文件"""
    config_file = temp_dir / "config.yaml"
    config_content = f"""
app:
  name: "freightquote"
  debug: true
  log_level: "DEBUG"

fx:
  provider_url: "https://fx.test"
  timeout_seconds: 2
  freshness_hours: 12
  best_effort: true
  store: "sqlite"
  store_path: "{(temp_dir / 'fx_rates.db').as_posix()}"

pricing:
  computation_currency: "usd"
  container_rates:
    20ft-standard: 1500
  overrides:
    documentation_fee: 50

display:
  locale: "de_DE"
"""
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture
def config(temp_config_file):
    """测试配置实例"""
    return Config(str(temp_config_file))


@pytest.fixture
def rates_file(temp_dir):
    """离线汇率表"""
    path = temp_dir / "rates.json"
    path.write_text('{"USD": {"EUR": 0.9, "GBP": 0.8}, "EUR": {"USD": 1.1111}}', encoding="utf-8")
    return path
