"""PyYAML loader → typed config dataclasses.

Every threshold, window and batch size in the engine is a configuration
input with a default. Invalid values raise ConfigError before any Event is
accepted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from security_alerting.models.severity import SEVERITY_LEVELS, Severity, is_valid_severity

ALL_CATEGORIES = (
    "xss",
    "sql_injection",
    "path_traversal",
    "command_injection",
    "suspicious_agent",
    "suspicious_behavior",
)


class ConfigError(ValueError):
    """Raised at startup when a configuration value is unusable."""


@dataclass
class CounterConfig:
    threshold: int
    window_seconds: int


def default_counters() -> dict[str, CounterConfig]:
    return {
        "login_failure": CounterConfig(threshold=5, window_seconds=15 * 60),
        "auth_request": CounterConfig(threshold=5, window_seconds=15 * 60),
        "api_request": CounterConfig(threshold=100, window_seconds=15 * 60),
        "input_rejection": CounterConfig(threshold=10, window_seconds=15 * 60),
        "high_severity_alert": CounterConfig(threshold=1, window_seconds=5 * 60),
        "medium_severity_alert": CounterConfig(threshold=3, window_seconds=15 * 60),
        "low_severity_alert": CounterConfig(threshold=50, window_seconds=24 * 60 * 60),
    }


@dataclass
class BehaviorConfig:
    block_duration_seconds: int = 30 * 60
    brute_force_counters: list[str] = field(
        default_factory=lambda: ["login_failure", "auth_request"]
    )
    max_events_tracked: int = 1000


@dataclass
class DetectionConfig:
    enabled_categories: list[str] = field(default_factory=lambda: list(ALL_CATEGORIES))
    max_scan_length: int = 10_000


@dataclass
class AlertConfig:
    min_severity: Severity = "low"
    auto_resolve_after_seconds: dict[str, int] = field(
        default_factory=lambda: {"low": 24 * 60 * 60}
    )
    sweep_interval_seconds: int = 60
    max_retained_alerts: int = 10_000  # resolved alerts beyond this are evicted, oldest first


@dataclass
class AuditConfig:
    batch_size: int = 50
    max_buffered: int = 1000
    flush_interval_seconds: float = 30.0
    flush_timeout_seconds: float = 10.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json: bool = True


@dataclass
class AppConfig:
    counters: dict[str, CounterConfig] = field(default_factory=default_counters)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "security_alerting"

    def escalation_counter(self, severity: Severity) -> CounterConfig | None:
        """Escalation threshold for alerts of this severity (None: never escalates)."""
        return self.counters.get(f"{severity}_severity_alert")

    def validate(self) -> None:
        for kind, counter in self.counters.items():
            if counter.threshold < 1:
                raise ConfigError(f"counters.{kind}.threshold must be >= 1, got {counter.threshold}")
            if counter.window_seconds <= 0:
                raise ConfigError(
                    f"counters.{kind}.window_seconds must be > 0, got {counter.window_seconds}"
                )

        for kind in self.behavior.brute_force_counters:
            if kind not in self.counters:
                raise ConfigError(f"behavior.brute_force_counters: unknown counter '{kind}'")
        if self.behavior.block_duration_seconds <= 0:
            raise ConfigError("behavior.block_duration_seconds must be > 0")
        if self.behavior.max_events_tracked < 1:
            raise ConfigError("behavior.max_events_tracked must be >= 1")
        largest = max((c.threshold for c in self.counters.values()), default=0)
        if self.behavior.max_events_tracked <= largest:
            raise ConfigError(
                f"behavior.max_events_tracked ({self.behavior.max_events_tracked}) "
                f"must exceed the largest counter threshold ({largest})"
            )

        unknown = set(self.detection.enabled_categories) - set(ALL_CATEGORIES)
        if unknown:
            raise ConfigError(f"detection.enabled_categories: unknown {sorted(unknown)}")
        if self.detection.max_scan_length < 1:
            raise ConfigError("detection.max_scan_length must be >= 1")

        if not is_valid_severity(self.alerts.min_severity):
            raise ConfigError(f"alerts.min_severity must be one of {SEVERITY_LEVELS}")
        for severity, seconds in self.alerts.auto_resolve_after_seconds.items():
            if not is_valid_severity(severity):
                raise ConfigError(f"alerts.auto_resolve_after_seconds: unknown severity '{severity}'")
            if seconds <= 0:
                raise ConfigError(f"alerts.auto_resolve_after_seconds.{severity} must be > 0")
        if self.alerts.sweep_interval_seconds <= 0:
            raise ConfigError("alerts.sweep_interval_seconds must be > 0")
        if self.alerts.max_retained_alerts < 1:
            raise ConfigError("alerts.max_retained_alerts must be >= 1")

        if self.audit.batch_size < 1:
            raise ConfigError("audit.batch_size must be >= 1")
        if self.audit.max_buffered < self.audit.batch_size:
            raise ConfigError("audit.max_buffered must be >= audit.batch_size")
        if self.audit.flush_interval_seconds <= 0 or self.audit.flush_timeout_seconds <= 0:
            raise ConfigError("audit flush interval and timeout must be > 0")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load thresholds.yaml and return a validated AppConfig.

    Falls back to defaults if the file is absent or a section is missing.
    Environment variables MONGO_URI, MONGO_DB and LOG_LEVEL override the file.
    """
    raw: dict = {}
    if path is None:
        path = Path(__file__).parent.parent.parent / "config" / "thresholds.yaml"

    resolved = Path(path)
    if resolved.exists():
        with resolved.open() as f:
            raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{resolved}: top level must be a mapping")

    counters = default_counters()
    for kind, values in (raw.get("counters") or {}).items():
        base = counters.get(kind)
        try:
            counters[kind] = CounterConfig(
                threshold=int(values.get("threshold", base.threshold if base else 0)),
                window_seconds=int(
                    values.get("window_seconds", base.window_seconds if base else 0)
                ),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise ConfigError(f"counters.{kind}: {exc}") from exc

    behavior_raw = raw.get("behavior", {}) or {}
    detection_raw = raw.get("detection", {}) or {}
    alerts_raw = raw.get("alerts", {}) or {}
    audit_raw = raw.get("audit", {}) or {}
    logging_raw = raw.get("logging", {}) or {}

    behavior_defaults = BehaviorConfig()
    detection_defaults = DetectionConfig()
    alert_defaults = AlertConfig()

    config = AppConfig(
        counters=counters,
        behavior=BehaviorConfig(
            block_duration_seconds=behavior_raw.get("block_duration_seconds", 30 * 60),
            brute_force_counters=behavior_raw.get(
                "brute_force_counters", behavior_defaults.brute_force_counters
            ),
            max_events_tracked=behavior_raw.get("max_events_tracked", 1000),
        ),
        detection=DetectionConfig(
            enabled_categories=detection_raw.get(
                "enabled_categories", detection_defaults.enabled_categories
            ),
            max_scan_length=detection_raw.get("max_scan_length", 10_000),
        ),
        alerts=AlertConfig(
            min_severity=alerts_raw.get("min_severity", "low"),
            auto_resolve_after_seconds=alerts_raw.get(
                "auto_resolve_after_seconds", alert_defaults.auto_resolve_after_seconds
            ),
            sweep_interval_seconds=alerts_raw.get("sweep_interval_seconds", 60),
            max_retained_alerts=alerts_raw.get("max_retained_alerts", 10_000),
        ),
        audit=AuditConfig(
            batch_size=audit_raw.get("batch_size", 50),
            max_buffered=audit_raw.get("max_buffered", 1000),
            flush_interval_seconds=audit_raw.get("flush_interval_seconds", 30.0),
            flush_timeout_seconds=audit_raw.get("flush_timeout_seconds", 10.0),
        ),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_raw.get("level", "INFO")),
            json=logging_raw.get("json", True),
        ),
        mongo_uri=os.getenv("MONGO_URI", raw.get("mongo_uri", "mongodb://localhost:27017")),
        mongo_db=os.getenv("MONGO_DB", raw.get("mongo_db", "security_alerting")),
    )
    config.validate()
    return config
