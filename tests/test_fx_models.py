"""汇率表模型与存储测试。"""

import sqlite3
from datetime import UTC, datetime, timedelta

import pytest

from freightquote.modules.fx.models import RateTable, parse_rates
from freightquote.modules.fx.store import InMemoryRateStore, SqliteRateStore


def test_factor_for_base_is_one_and_not_stored() -> None:
    table = RateTable.from_provider_payload(
        {"base": "usd", "rates": {"USD": 1.0, "EUR": 0.9}},
        base="USD",
        fetched_at=datetime(2024, 1, 1, tzinfo=UTC),
    )

    assert table.factor("usd") == 1.0
    assert "USD" not in table.rates
    assert table.factor("eur") == 0.9
    assert table.factor("GBP") is None


def test_parse_rates_drops_invalid_values() -> None:
    rates = parse_rates(
        {"eur": "0.9", "GBP": 0, "JPY": -1, "CNY": "abc", "CHF": True, "SEK": float("nan"), "NOK": 10.5},
        base="USD",
    )

    assert rates == {"EUR": 0.9, "NOK": 10.5}


def test_freshness_window_is_exclusive() -> None:
    fetched = datetime(2024, 1, 1, tzinfo=UTC)
    table = RateTable(base="USD", fetched_at=fetched, rates={"EUR": 0.9})
    window = timedelta(hours=24)

    assert table.is_fresh(fetched + timedelta(hours=23, minutes=59), window)
    assert not table.is_fresh(fetched + timedelta(hours=24), window)


def test_from_dict_accepts_naive_timestamp_as_utc() -> None:
    table = RateTable.from_dict({"updatedAt": "2024-05-01T10:00:00", "base": "eur", "rates": {"USD": 1.08}})

    assert table.base == "EUR"
    assert table.fetched_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "payload",
    [
        {"base": "USD", "rates": {}},
        {"updatedAt": "2024-05-01T10:00:00Z", "rates": {}},
        {"updatedAt": "yesterday", "base": "USD", "rates": {}},
        ["not", "a", "mapping"],
    ],
)
def test_from_dict_rejects_incomplete_payloads(payload) -> None:
    with pytest.raises(ValueError):
        RateTable.from_dict(payload)


def test_sqlite_store_upserts_by_key(temp_dir) -> None:
    store = SqliteRateStore(str(temp_dir / "nested" / "fx.db"))
    store.put("fx_USD", {"base": "USD", "rates": {"EUR": 0.9}})
    store.put("fx_USD", {"base": "USD", "rates": {"EUR": 0.95}})
    store.put("fx_EUR", {"base": "EUR", "rates": {"USD": 1.1}})

    assert store.get("fx_USD")["rates"] == {"EUR": 0.95}
    assert store.get("fx_GBP") is None
    assert store.keys() == ["fx_EUR", "fx_USD"]


def test_memory_store_returns_copies() -> None:
    store = InMemoryRateStore()
    store.put("fx_USD", {"base": "USD", "rates": {"EUR": 0.9}})

    loaded = store.get("fx_USD")
    loaded["rates"]["EUR"] = 123.0

    assert store.get("fx_USD")["rates"]["EUR"] == 0.9


def test_sqlite_store_closes_every_connection(temp_dir, monkeypatch) -> None:
    opened: list[sqlite3.Connection] = []
    real_connect = sqlite3.connect

    def tracking_connect(*args, **kwargs):
        conn = real_connect(*args, **kwargs)
        opened.append(conn)
        return conn

    monkeypatch.setattr(sqlite3, "connect", tracking_connect)
    store = SqliteRateStore(str(temp_dir / "fx.db"))
    store.put("fx_USD", {"base": "USD", "rates": {"EUR": 0.9}})
    store.get("fx_USD")
    store.keys()

    assert len(opened) == 4
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
