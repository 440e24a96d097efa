"""Tests for settings validation."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.config import Settings


def test_defaults():
    settings = Settings(_env_file=None, price_alert_policy="threshold")
    assert settings.price_change_threshold == Decimal("5.00")
    assert settings.amadeus_non_stop is True


def test_policy_normalized():
    assert Settings(_env_file=None, price_alert_policy=" Drop_Only ").price_alert_policy == "drop_only"


def test_unknown_policy_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, price_alert_policy="sometimes")


def test_prod_rejects_sqlite():
    with pytest.raises(ValueError):
        Settings(_env_file=None, env="prod", database_url="sqlite:///./prod.db")


def test_prod_accepts_postgres():
    settings = Settings(_env_file=None, env="prod", database_url="postgresql://u:p@db/fares")
    assert settings.env == "prod"
