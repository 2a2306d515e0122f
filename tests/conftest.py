"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from yield_ledger.access import AccessControl
from yield_ledger.config import (
    AppConfig,
    EmailConfig,
    LedgerConfig,
    NotificationsConfig,
    StateConfig,
    StrategySeed,
    TelegramConfig,
)
from yield_ledger.models import CallContext
from yield_ledger.store import LedgerStore
from yield_ledger.views import LedgerViews

OWNER = "owner.near"
ALICE = "alice.near"
BOB = "bob.near"

T0 = 1_700_000_000
YEAR = 31_536_000


# ---------------------------------------------------------------------------
# Ledger fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> LedgerStore:
    return LedgerStore(owner_id=OWNER, governance_token="gov.token.near")


@pytest.fixture()
def control(store: LedgerStore) -> AccessControl:
    return AccessControl(store)


@pytest.fixture()
def views(store: LedgerStore) -> LedgerViews:
    return LedgerViews(store)


@pytest.fixture()
def owner_ctx() -> CallContext:
    return CallContext(caller=OWNER, timestamp=T0)


@pytest.fixture()
def strategy_id(control: AccessControl, owner_ctx: CallContext) -> int:
    """A 5% strategy with a 1_000_000 floor."""
    return control.add_strategy(owner_ctx, "USDC Lending", "burrow", 500, 1_000_000)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        ledger=LedgerConfig(owner_id=OWNER, governance_token="gov.token.near"),
        state=StateConfig(path=str(tmp_path / "ledger.json")),
        strategies=(
            StrategySeed(name="USDC Lending", protocol="burrow", apy_bps=500, min_deposit=1_000_000),
            StrategySeed(
                name="Legacy Vault", protocol="ref", apy_bps=300, min_deposit=10, active=False
            ),
        ),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    ledger:
      owner_id: owner.near
      governance_token: gov.token.near
      min_deposit_amount: 0
    state:
      path: "{state_path}"
    strategies:
      - name: USDC Lending
        protocol: burrow
        apy_bps: 500
        min_deposit: 1000000
      - name: NEAR Staking
        protocol: meta-pool
        apy_bps: 1000
        min_deposit: 1000000
    notifications:
      telegram:
        enabled: false
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML.format(state_path=tmp_path / "state" / "ledger.json"))
    return cfg_file
