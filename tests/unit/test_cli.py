"""Tests for the dlvrit CLI."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from dlvrit.cli import app
from dlvrit.client import ClientPromoResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def _settings(settings):
    return settings


class TestQuote:
    def test_default_flat_rate(self):
        result = runner.invoke(app, ["quote", "5"])
        assert result.exit_code == 0
        assert "80000 minor units" in result.output
        assert "800.00 GBP" in result.output

    def test_overrides(self):
        result = runner.invoke(app, ["quote", "2", "--unit-amount", "1000", "--currency", "usd"])
        assert result.exit_code == 0
        assert "2000 minor units" in result.output

    def test_zero_quantity_fails(self):
        result = runner.invoke(app, ["quote", "0"])
        assert result.exit_code == 1


class TestPortalUrl:
    def test_uses_configured_host(self):
        result = runner.invoke(app, ["portal-url", "Trailer Cut", "a@b.com"])
        assert result.exit_code == 0
        assert "name=Trailer%20Cut&email=a%40b.com" in result.output

    def test_explicit_host(self):
        result = runner.invoke(app, ["portal-url", "X", "a@b.com", "--host", "p.example"])
        assert "https://p.example/?name=X" in result.output


class TestValidatePromo:
    def test_valid_code(self):
        with patch(
            "dlvrit.client.CheckoutClient.validate_promo_code",
            return_value=ClientPromoResult(valid=True, percent_off=10),
        ):
            result = runner.invoke(app, ["validate-promo", "SAVE10"])
        assert result.exit_code == 0
        assert "VALID" in result.output

    def test_invalid_code(self):
        with patch(
            "dlvrit.client.CheckoutClient.validate_promo_code",
            return_value=ClientPromoResult(valid=False),
        ):
            result = runner.invoke(app, ["validate-promo", "BADCODE"])
        assert result.exit_code == 1
        assert "NOT VALID" in result.output
