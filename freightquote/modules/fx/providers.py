"""汇率源 provider 适配层。"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

import httpx

from freightquote.core.error_handler import log_execution_time
from freightquote.modules.fx.models import normalize_code


class RateProviderError(RuntimeError):
    """汇率源错误（网络、非 2xx、响应格式错误）。"""


class IRateProvider(ABC):
    """汇率源接口。"""

    @abstractmethod
    async def fetch_latest(self, base: str, symbols: list[str] | None = None) -> dict[str, Any]:
        """返回 {"base": str, "rates": {code: factor}}。"""

    @abstractmethod
    async def health_check(self) -> bool:
        pass


class HttpRateProvider(IRateProvider):
    """`GET <provider>/latest?base=..&symbols=..` 形式的 HTTP 汇率源。"""

    def __init__(
        self,
        *,
        base_url: str = "https://api.exchangerate.host",
        timeout_seconds: float = 5.0,
        api_key_env: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = str(base_url or "").strip().rstrip("/")
        self.timeout_seconds = max(0.2, float(timeout_seconds))
        self.api_key_env = str(api_key_env or "").strip()
        self._transport = transport

    def _build_params(self, base: str, symbols: list[str] | None) -> dict[str, str]:
        params = {"base": normalize_code(base)}
        codes = [normalize_code(s) for s in symbols or [] if normalize_code(s)]
        if codes:
            params["symbols"] = ",".join(codes)
        api_key = os.getenv(self.api_key_env, "").strip() if self.api_key_env else ""
        if api_key:
            params["apikey"] = api_key
        return params

    @log_execution_time(label="fx_fetch_latest")
    async def fetch_latest(self, base: str, symbols: list[str] | None = None) -> dict[str, Any]:
        if not self.base_url:
            raise RateProviderError("fx provider_url is empty")

        url = f"{self.base_url}/latest"
        params = self._build_params(base, symbols)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise RateProviderError(f"FX request timeout: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RateProviderError(f"FX request failed: {exc}") from exc

        if not response.is_success:
            raise RateProviderError(f"FX fetch failed ({response.status_code})")

        try:
            body = response.json()
        except ValueError as exc:
            raise RateProviderError(f"FX response invalid json: {exc}") from exc

        return _parse_latest_response(body, requested_base=params["base"])

    async def health_check(self) -> bool:
        return bool(self.base_url)


class StaticRateProvider(IRateProvider):
    """固定汇率表 provider，用于离线运行与测试。"""

    def __init__(self, tables: dict[str, dict[str, float]] | None = None):
        self.tables = {normalize_code(k): dict(v) for k, v in (tables or {}).items()}
        self.calls: list[tuple[str, list[str]]] = []

    async def fetch_latest(self, base: str, symbols: list[str] | None = None) -> dict[str, Any]:
        code = normalize_code(base)
        self.calls.append((code, [normalize_code(s) for s in symbols or []]))
        if code not in self.tables:
            raise RateProviderError(f"No static rates for base {code}")
        # 与真实接口一致：忽略 symbols，返回整张表
        return {"base": code, "rates": dict(self.tables[code])}

    async def health_check(self) -> bool:
        return bool(self.tables)


def _parse_latest_response(data: Any, *, requested_base: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise RateProviderError("FX response must be a JSON object")
    if data.get("success") is False:
        error = data.get("error")
        raise RateProviderError(f"FX provider reported failure: {error}")
    rates = data.get("rates")
    if not isinstance(rates, dict):
        raise RateProviderError("FX response missing rates mapping")
    return {"base": normalize_code(data.get("base") or requested_base), "rates": rates}
