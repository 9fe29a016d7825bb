"""Configuration management for tickerlens using TOML files + kwargs overrides."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

from tickerlens.analysis.view import IndicatorSettings

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]


@dataclass
class FeedConfig:
    history: str = "5y"
    interval: str = "1d"  # 15m, 60m, 1d, 1wk, 1mo
    display_range: str = ""  # "", 1mo, 3mo, 6mo, 1y, 2y, 5y
    local_labels: bool = True


@dataclass
class IndicatorConfig:
    ma_periods: list[int] = field(default_factory=lambda: [5, 10, 20, 60])
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    kdj_period: int = 9


@dataclass
class ResampleConfig:
    fragment_epsilon: float = 1e-4
    keep: str = "first"  # "first" or "last"


@dataclass
class FinMindConfig:
    enabled: bool = True
    base_url: str = "https://api.finmindtrade.com/api/v4/data"
    token: str = ""
    timeout_seconds: float = 10.0


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class DashboardConfig:
    feed: FeedConfig = field(default_factory=FeedConfig)
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    resample: ResampleConfig = field(default_factory=ResampleConfig)
    finmind: FinMindConfig = field(default_factory=FinMindConfig)
    display: IndicatorSettings = field(default_factory=IndicatorSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def defaults() -> DashboardConfig:
        return DashboardConfig()

    @staticmethod
    def load(path: str | Path) -> DashboardConfig:
        """Load config from a TOML file. Missing file returns defaults."""
        cfg = DashboardConfig()
        p = Path(path)
        if not p.exists():
            return cfg

        with open(p, "rb") as f:
            data = tomllib.load(f)

        _apply_toml(cfg, data)
        return cfg

    @staticmethod
    def load_with_overrides(path: str | Path, **kwargs: object) -> DashboardConfig:
        """Load from TOML, then apply keyword overrides.

        Override keys use dot notation mapped to flat names:
          feed.interval=1wk
          resample.fragment_epsilon=0.001
          logging.level=DEBUG
        """
        cfg = DashboardConfig.load(path)
        _apply_overrides(cfg, kwargs)
        return cfg


def _sections(cfg: DashboardConfig) -> dict[str, object]:
    return {
        "feed": cfg.feed,
        "indicators": cfg.indicators,
        "resample": cfg.resample,
        "finmind": cfg.finmind,
        "display": cfg.display,
        "logging": cfg.logging,
    }


def _coerce(current: object, value: object) -> object:
    # bool before int: bool is a subclass of int
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(current, float):
        return float(value)  # type: ignore[arg-type]
    if isinstance(current, int):
        return int(value)  # type: ignore[arg-type]
    if isinstance(current, list):
        if isinstance(value, str):
            return [int(v) for v in value.split(",") if v.strip()]
        return [int(v) for v in value]  # type: ignore[union-attr]
    return str(value)


def _apply_toml(cfg: DashboardConfig, data: dict) -> None:
    for name, section in _sections(cfg).items():
        values = data.get(name)
        if not isinstance(values, dict):
            continue
        for key, value in values.items():
            if hasattr(section, key):
                setattr(section, key, _coerce(getattr(section, key), value))


def _apply_overrides(cfg: DashboardConfig, overrides: dict[str, object]) -> None:
    sections = _sections(cfg)
    for key, value in overrides.items():
        if value is None or "." not in key:
            continue
        name, attr = key.split(".", 1)
        section = sections.get(name)
        if section is None or not hasattr(section, attr):
            continue
        setattr(section, attr, _coerce(getattr(section, attr), value))
