"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    owner_id: str = ""
    governance_token: str = ""
    min_deposit_amount: int = 0
    operators: tuple[str, ...] = ()


@dataclass(frozen=True)
class StateConfig:
    path: str = "state/ledger.json"


@dataclass(frozen=True)
class StrategySeed:
    name: str = ""
    protocol: str = ""
    apy_bps: int = 0
    min_deposit: int = 0
    active: bool = True


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    state: StateConfig = field(default_factory=StateConfig)
    strategies: tuple[StrategySeed, ...] = ()
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_ledger(raw: dict[str, Any]) -> LedgerConfig:
    return LedgerConfig(
        owner_id=str(raw.get("owner_id", "")),
        governance_token=str(raw.get("governance_token", "")),
        min_deposit_amount=int(raw.get("min_deposit_amount", 0)),
        operators=tuple(str(op) for op in raw.get("operators", [])),
    )


def _build_state(raw: dict[str, Any]) -> StateConfig:
    return StateConfig(path=str(raw.get("path", StateConfig.path)))


def _build_strategies(raw: list[dict[str, Any]]) -> tuple[StrategySeed, ...]:
    seeds: list[StrategySeed] = []
    for s in raw:
        seeds.append(
            StrategySeed(
                name=s.get("name", ""),
                protocol=s.get("protocol", ""),
                apy_bps=int(s.get("apy_bps", 0)),
                min_deposit=int(s.get("min_deposit", 0)),
                active=bool(s.get("active", True)),
            )
        )
    return tuple(seeds)


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    em = raw.get("email", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        ledger=_build_ledger(raw.get("ledger", {})),
        state=_build_state(raw.get("state", {})),
        strategies=_build_strategies(raw.get("strategies", [])),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.ledger.owner_id:
        raise ValueError("ledger.owner_id must be configured")
    if cfg.ledger.min_deposit_amount < 0:
        raise ValueError("ledger.min_deposit_amount must be non-negative")

    for seed in cfg.strategies:
        if not seed.name:
            raise ValueError("Seed strategy has no name")
        if seed.min_deposit <= 0:
            raise ValueError(f"Strategy '{seed.name}' needs a positive min_deposit")
        if seed.apy_bps < 0:
            raise ValueError(f"Strategy '{seed.name}' has a negative apy_bps")
