"""Tests for the command line entry point."""

import argparse
import json
from decimal import Decimal
from unittest.mock import patch

import pytest

from renovation_pricing import cli
from renovation_pricing.services.price_discovery.models import PriceComparison, ScrapeResult

RESULT = ScrapeResult(
    supplier_id=3,
    supplier_name="Brico Pro",
    source_platform="shopify",
    query="visseuse",
    search_url="https://brico.example/search?q=visseuse",
    product_url="https://brico.example/products/visseuse-18v",
    price_value=Decimal("45.00"),
    currency="EUR",
)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, set()), ("", set()), ("1,3", {1, 3}), (" 2 , x, 5,", {2, 5}), ("4,4", {4})],
)
def test_parse_ids(raw, expected) -> None:
    assert cli.parse_ids(raw) == expected


def test_parse_sale_price_accepts_comma() -> None:
    assert cli.parse_sale_price("129,90") == Decimal("129.90")


@pytest.mark.parametrize("raw", ["abc", "-1", "NaN"])
def test_parse_sale_price_rejects_invalid(raw) -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_sale_price(raw)


class TestMain:
    """Test cases for cli.main."""

    def setup_method(self) -> None:
        self.logger_patcher = patch("renovation_pricing.cli.get_logger")
        self.logger_patcher.start()
        self.factory_patcher = patch("renovation_pricing.cli.create_price_service")
        self.create_service = self.factory_patcher.start()
        self.service = self.create_service.return_value

    def teardown_method(self) -> None:
        self.factory_patcher.stop()
        self.logger_patcher.stop()

    def test_blank_query_prints_empty_items(self, capsys) -> None:
        exit_code = cli.main(["scrape", "   "])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == {"query": "", "items": []}
        self.create_service.assert_not_called()

    def test_scrape_prints_results(self, capsys) -> None:
        # Arrange
        self.service.scrape.return_value = [RESULT]

        # Act
        exit_code = cli.main(["scrape", "visseuse", "--limit", "5", "--ids", "3,4"])

        # Assert
        assert exit_code == 0
        self.service.scrape.assert_called_once_with("visseuse", 5, {3, 4})
        self.service.close.assert_called_once()
        output = json.loads(capsys.readouterr().out)
        assert output["query"] == "visseuse"
        assert output["items"][0]["price_value"] == 45.0
        assert output["items"][0]["source_platform"] == "shopify"

    def test_compare_prints_margins(self, capsys) -> None:
        self.service.compare.return_value = [
            PriceComparison(
                supplier_id=3,
                supplier_name="Brico Pro",
                product_url=None,
                price_value=Decimal("45.00"),
                currency="EUR",
                cost_eur=Decimal("45.00"),
                margin_abs=Decimal("15.00"),
                margin_pct=Decimal("25.0"),
            )
        ]

        cli.main(["compare", "visseuse", "--sell", "60"])

        self.service.compare.assert_called_once_with("visseuse", Decimal("60"), None, set())
        item = json.loads(capsys.readouterr().out)["items"][0]
        assert item["margin_abs"] == 15.0
        assert item["margin_pct"] == 25.0
        assert item["product_url"] is None

    def test_service_is_closed_on_failure(self) -> None:
        self.service.scrape.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cli.main(["scrape", "visseuse"])

        self.service.close.assert_called_once()

    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["scrape", "visseuse", "--limit", "0"])
