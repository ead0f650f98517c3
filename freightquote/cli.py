"""
货运报价 CLI

所有命令输出结构化 JSON，方便调用方解析结果。

用法:
    python -m freightquote.cli quote --mode FCL --container-kind 40ft-high-cube --containers 2 \
        --weight 18000 --volume 60 --incoterm CIF --insured --declared-value 50000 --currency EUR
    python -m freightquote.cli quote --mode LCL --weight 800 --volume 3.5 --rates-file rates.json --currency GBP
    python -m freightquote.cli fx --action rate --base USD --target EUR
    python -m freightquote.cli fx --action convert --amount 1250 --base USD --target EUR
    python -m freightquote.cli fx --action prefetch --base USD --targets EUR,GBP,CNY
    python -m freightquote.cli fx --action cached --base USD
    python -m freightquote.cli format --amount 1234.5 --currency EUR --locale de_DE
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any


class CliError(Exception):
    """命令执行失败，payload 原样输出。"""

    def __init__(self, payload: dict[str, Any]):
        self.payload = payload
        super().__init__(str(payload.get("error", "")))


def _json_out(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _load_static_provider(path: str):
    from freightquote.modules.fx import StaticRateProvider

    tables = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(tables, dict):
        raise CliError({"error": f"Rates file must map base currency to rates: {path}"})
    return StaticRateProvider(tables)


def _build_engine(args: argparse.Namespace):
    from freightquote.core.config import get_config
    from freightquote.modules.quote import build_quote_engine

    config = get_config(args.config_path) if args.config_path else get_config()
    provider = _load_static_provider(args.rates_file) if args.rates_file else None
    return config, build_quote_engine(config, provider=provider)


def _error_payload(exc: Exception) -> dict[str, Any]:
    from freightquote.core.error_handler import FreightQuoteError
    from freightquote.modules.display import customer_message

    payload: dict[str, Any] = {"error": str(exc), "type": exc.__class__.__name__}
    if isinstance(exc, FreightQuoteError):
        payload["details"] = exc.details
    payload["message"] = customer_message(exc)
    return payload


async def cmd_quote(args: argparse.Namespace) -> None:
    from freightquote.core.error_handler import FreightQuoteError
    from freightquote.modules.display import customer_message, format_breakdown, rate_source_label
    from freightquote.modules.quote import ShipmentInput

    config, engine = _build_engine(args)
    shipment_data = {
        "mode": args.mode,
        "containerKind": args.container_kind,
        "containerCount": args.containers,
        "weightKg": args.weight,
        "volumeCbm": args.volume,
        "incoterm": args.incoterm,
        "insured": bool(args.insured),
        "declaredValue": args.declared_value,
    }
    display_currency = args.currency or config.get("display.currency") or None
    locale = args.locale or config.get("display.locale", "en_US")

    try:
        shipment = ShipmentInput.from_dict(shipment_data)
        breakdown = await engine.quote(shipment, display_currency)
    except FreightQuoteError as exc:
        raise CliError(_error_payload(exc)) from exc

    _json_out(
        {
            "shipment": shipment.to_dict(),
            "breakdown": breakdown.to_dict(),
            "formatted": format_breakdown(breakdown, locale=locale),
            "rateLabel": rate_source_label(breakdown) if breakdown.rate_source else None,
            "message": customer_message(),
        }
    )


async def cmd_fx(args: argparse.Namespace) -> None:
    from freightquote.core.error_handler import FreightQuoteError
    from freightquote.modules.display import rate_source_label

    _, engine = _build_engine(args)
    cache = engine.rate_cache
    action = args.action

    try:
        if action == "rate":
            lookup = await cache.lookup(args.base, args.target)
            _json_out({**lookup.to_dict(), "label": rate_source_label(lookup)})
            return

        if action == "convert":
            if args.amount is None:
                raise CliError({"error": "Specify --amount"})
            converted = await cache.convert_amount(args.amount, args.base, args.target)
            _json_out({"amount": args.amount, "base": args.base.upper(), "target": args.target.upper(), "converted": converted})
            return

        if action == "prefetch":
            targets = [code.strip() for code in str(args.targets or "").split(",") if code.strip()]
            table = await cache.prefetch(args.base, targets)
            _json_out(table.to_dict())
            return

        if action == "cached":
            table = cache.cached_table(args.base)
            _json_out({"base": args.base.upper(), "fresh": table is not None, "table": table.to_dict() if table else None})
            return

        if action == "health":
            _json_out(await cache.health_check())
            return
    except FreightQuoteError as exc:
        raise CliError(_error_payload(exc)) from exc

    raise CliError({"error": f"Unknown fx action: {action}"})


async def cmd_format(args: argparse.Namespace) -> None:
    from freightquote.modules.display import format_currency

    _json_out(
        {
            "amount": args.amount,
            "currency": args.currency.upper(),
            "locale": args.locale,
            "formatted": format_currency(args.amount, args.currency, args.locale),
        }
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="freightquote", description="海运报价与汇率换算工具")
    parser.add_argument("--config-path", default=None, help="配置文件路径")
    sub = parser.add_subparsers(dest="command")

    # quote
    p = sub.add_parser("quote", help="计算分项报价")
    p.add_argument("--mode", required=True, help="FCL / LCL / BreakBulk")
    p.add_argument("--container-kind", default=None, help="20ft-standard / 40ft-standard / 40ft-high-cube")
    p.add_argument("--containers", type=int, default=1, help="箱数（整箱）")
    p.add_argument("--weight", type=float, default=0.0, help="毛重（kg）")
    p.add_argument("--volume", type=float, default=0.0, help="体积（cbm）")
    p.add_argument("--incoterm", default="FOB", help="贸易术语")
    p.add_argument("--insured", action="store_true", help="投保")
    p.add_argument("--declared-value", type=float, default=None, help="申报货值")
    p.add_argument("--currency", default=None, help="展示币种")
    p.add_argument("--locale", default=None, help="展示区域设置，如 de_DE")
    p.add_argument("--rates-file", default=None, help="离线汇率表 JSON（{base: {code: rate}}）")

    # fx
    p = sub.add_parser("fx", help="汇率查询与换算")
    p.add_argument("--action", required=True, choices=["rate", "convert", "prefetch", "cached", "health"])
    p.add_argument("--base", default="USD", help="基准币种")
    p.add_argument("--target", default="EUR", help="目标币种")
    p.add_argument("--targets", default="", help="逗号分隔的目标币种（prefetch）")
    p.add_argument("--amount", type=float, default=None, help="换算金额（convert）")
    p.add_argument("--rates-file", default=None, help="离线汇率表 JSON（{base: {code: rate}}）")

    # format
    p = sub.add_parser("format", help="金额本地化展示")
    p.add_argument("--amount", type=float, required=True)
    p.add_argument("--currency", required=True)
    p.add_argument("--locale", default=None)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    dispatch = {
        "quote": cmd_quote,
        "fx": cmd_fx,
        "format": cmd_format,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(handler(args))
    except KeyboardInterrupt:
        pass
    except CliError as e:
        _json_out(e.payload)
        sys.exit(1)
    except Exception as e:
        _json_out({"error": str(e), "type": e.__class__.__name__})
        sys.exit(1)


if __name__ == "__main__":
    main()
