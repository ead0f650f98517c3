"""报价 CLI 测试。"""

import json

import pytest

from freightquote.cli import build_parser, main


def _memory_config(temp_dir):
    path = temp_dir / "cli.yaml"
    path.write_text('fx:\n  store: "memory"\ndisplay:\n  locale: "en_US"\n', encoding="utf-8")
    return str(path)


def test_quote_cli_parses_shipment_flags() -> None:
    parser = build_parser()
    args = parser.parse_args(
        [
            "quote",
            "--mode",
            "FCL",
            "--container-kind",
            "40ft-high-cube",
            "--containers",
            "2",
            "--insured",
            "--declared-value",
            "50000",
            "--currency",
            "EUR",
        ]
    )

    assert args.command == "quote"
    assert args.containers == 2
    assert args.insured is True
    assert args.declared_value == 50000.0


def test_fx_cli_rejects_unknown_action() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["fx", "--action", "delete"])


def test_quote_cli_offline_conversion(temp_dir, rates_file, capsys) -> None:
    main(
        [
            "--config-path",
            _memory_config(temp_dir),
            "quote",
            "--mode",
            "FCL",
            "--container-kind",
            "40ft-high-cube",
            "--containers",
            "2",
            "--weight",
            "18000",
            "--volume",
            "60",
            "--incoterm",
            "CIF",
            "--insured",
            "--declared-value",
            "50000",
            "--currency",
            "EUR",
            "--rates-file",
            str(rates_file),
        ]
    )

    output = json.loads(capsys.readouterr().out)
    assert output["breakdown"]["currency"] == "EUR"
    assert output["breakdown"]["total"] == 5577.3
    assert output["formatted"]["total"] == "€5,577.30"
    assert output["shipment"]["containerKind"] == "40ft-high-cube"
    assert output["breakdown"]["rateSource"] == "provider"
    assert output["breakdown"]["rateDefaultUsed"] is False
    assert output["rateLabel"] == "Live exchange rate"


def test_quote_cli_reports_validation_error(temp_dir, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--config-path", _memory_config(temp_dir), "quote", "--mode", "FCL"])

    assert exc_info.value.code == 1
    output = json.loads(capsys.readouterr().out)
    assert output["type"] == "ValidationError"
    assert output["details"]["field"] == "containerKind"
    assert "(container type)" in output["message"]


def test_fx_cli_rate_and_convert(temp_dir, rates_file, capsys) -> None:
    config_path = _memory_config(temp_dir)

    main(["--config-path", config_path, "fx", "--action", "rate", "--base", "usd", "--target", "gbp", "--rates-file", str(rates_file)])
    rate = json.loads(capsys.readouterr().out)
    main(
        [
            "--config-path",
            config_path,
            "fx",
            "--action",
            "convert",
            "--amount",
            "100",
            "--base",
            "USD",
            "--target",
            "EUR",
            "--rates-file",
            str(rates_file),
        ]
    )
    converted = json.loads(capsys.readouterr().out)

    assert rate["factor"] == 0.8
    assert rate["source"] == "provider"
    assert converted["converted"] == 90.0


def test_fx_cli_unsupported_currency(temp_dir, rates_file, capsys) -> None:
    with pytest.raises(SystemExit):
        main(
            [
                "--config-path",
                _memory_config(temp_dir),
                "fx",
                "--action",
                "rate",
                "--base",
                "USD",
                "--target",
                "XAU",
                "--rates-file",
                str(rates_file),
            ]
        )

    output = json.loads(capsys.readouterr().out)
    assert output["type"] == "UnsupportedCurrency"


def test_format_cli_falls_back_for_unknown_currency(capsys) -> None:
    main(["format", "--amount", "12", "--currency", "QQQ"])

    assert json.loads(capsys.readouterr().out)["formatted"] == "QQQ 12.00"


def test_quote_cli_marks_default_rate(temp_dir, rates_file, capsys) -> None:
    path = temp_dir / "lenient.yaml"
    path.write_text('fx:\n  store: "memory"\n  allow_unknown_default: true\n', encoding="utf-8")

    main(
        [
            "--config-path",
            str(path),
            "quote",
            "--mode",
            "LCL",
            "--weight",
            "800",
            "--volume",
            "3.5",
            "--currency",
            "XAU",
            "--rates-file",
            str(rates_file),
        ]
    )

    output = json.loads(capsys.readouterr().out)
    assert output["breakdown"]["total"] == 718
    assert output["breakdown"]["rateDefaultUsed"] is True
    assert "unavailable" in output["rateLabel"]
