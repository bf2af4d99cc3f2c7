"""
Regional Leaderboards - Alert Manager

Severity-based routing of run alerts:
- INFO: log
- WARNING: log + Slack (a phase reported entity errors)
- CRITICAL: log + Slack (a phase FAILED or startup aborted)

Delivery failures are logged and never raised.

Usage:
    alert_manager = AlertManager(config)
    alert_manager.send_alert(
        title="Region migration failed",
        message="Phase activity could not read scores",
        severity="critical",
        metadata={"phase": "activity"},
    )
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

import requests

from regionpipe.shared.config import Settings, get_config

if TYPE_CHECKING:
    from regionpipe.migration.migrator import MigrationRun

logger = logging.getLogger(__name__)


class AlertSeverity(StrEnum):
    """Alert severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertChannel(StrEnum):
    """Alert delivery channels."""

    LOG = "log"
    SLACK = "slack"


@dataclass
class Alert:
    """Alert message."""

    title: str
    message: str
    severity: AlertSeverity
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    environment: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "environment": self.environment,
            "metadata": self.metadata,
        }


class AlertManager:
    """Routes alerts to channels by severity."""

    def __init__(self, config: Settings | None = None):
        """
        Initialize alert manager.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    def send_alert(
        self,
        title: str,
        message: str,
        severity: Literal["info", "warning", "critical"] = "info",
        metadata: dict[str, Any] | None = None,
        channels: list[str] | None = None,
    ) -> bool:
        """
        Send an alert through its routed channels.

        Args:
            title: Alert title
            message: Alert message
            severity: Severity level (info, warning, critical)
            metadata: Additional metadata
            channels: Override default channel routing

        Returns:
            True if every channel accepted the alert
        """
        alert = Alert(
            title=title,
            message=message,
            severity=AlertSeverity(severity),
            environment=self.config.environment,
            metadata=metadata or {},
        )

        if channels is None:
            channels = self._get_channels_for_severity(alert.severity)

        success = True
        for channel in channels:
            try:
                self._send_to_channel(alert, AlertChannel(channel))
            except Exception as e:
                logger.error(
                    f"Failed to send alert to {channel}: {e}",
                    extra={"channel": channel, "alert": alert.title},
                    exc_info=True,
                )
                success = False

        return success

    def send_run_summary(self, run: MigrationRun) -> bool:
        """
        Alert on the outcome of a migration run.

        CRITICAL when a phase failed or was blocked, WARNING when any phase
        counted entity errors, INFO otherwise.
        """
        if run.failed_phases or run.blocked_phases:
            severity = "critical"
            title = "Region migration failed"
        elif run.total_errors:
            severity = "warning"
            title = "Region migration finished with errors"
        else:
            severity = "info"
            title = "Region migration finished"

        if run.preview:
            title += " [preview]"

        lines = [
            f"{name}: {result.status.value}, {result.updated} updated, "
            f"{result.skipped} skipped, {result.errors} errors"
            + (f" ({result.error_message})" if result.error_message else "")
            for name, result in run.results.items()
        ]

        return self.send_alert(
            title=title,
            message="\n".join(lines),
            severity=severity,
            metadata={
                "failed_phases": run.failed_phases,
                "blocked_phases": run.blocked_phases,
                "total_errors": run.total_errors,
            },
        )

    def send_startup_failure(self, error: Exception) -> bool:
        """Alert that the run aborted before any phase started."""
        return self.send_alert(
            title="Region migration aborted at startup",
            message=str(error),
            severity="critical",
            metadata={"error_type": type(error).__name__},
        )

    # =========================================================================
    # Private Methods
    # =========================================================================

    def _get_channels_for_severity(self, severity: AlertSeverity) -> list[str]:
        """Get default channels for a severity level; log only when alerting is disabled."""
        if not self.config.alerting.enabled or severity.value not in self.config.alerting.levels:
            return [AlertChannel.LOG.value]
        return self.config.alerting.routing.get(severity.value, [AlertChannel.LOG.value])

    def _send_to_channel(self, alert: Alert, channel: AlertChannel) -> None:
        if channel == AlertChannel.LOG:
            self._send_to_log(alert)
        elif channel == AlertChannel.SLACK:
            self._send_to_slack(alert)

    def _send_to_log(self, alert: Alert) -> None:
        log_level = {
            AlertSeverity.INFO: logging.INFO,
            AlertSeverity.WARNING: logging.WARNING,
            AlertSeverity.CRITICAL: logging.CRITICAL,
        }[alert.severity]

        logger.log(
            log_level,
            f"ALERT: {alert.title} - {alert.message}",
            extra={"alert_severity": alert.severity.value, "metadata": alert.metadata},
        )

    def _send_to_slack(self, alert: Alert) -> None:
        """Send alert to Slack via webhook."""
        webhook_url = self.config.slack_webhook_url or os.getenv("SLACK_WEBHOOK_URL")

        if not webhook_url:
            logger.warning("Slack webhook URL not configured, skipping Slack alert")
            return

        color = {
            AlertSeverity.INFO: "#36a64f",
            AlertSeverity.WARNING: "#ff9900",
            AlertSeverity.CRITICAL: "#ff0000",
        }[alert.severity]

        payload = {
            "attachments": [
                {
                    "color": color,
                    "title": alert.title,
                    "text": alert.message,
                    "fields": [
                        {"title": "Severity", "value": alert.severity.value.upper(), "short": True},
                        {"title": "Environment", "value": alert.environment, "short": True},
                    ],
                    "footer": "Regional Leaderboards Migration",
                    "ts": int(alert.timestamp.timestamp()),
                }
            ]
        }

        response = requests.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self.config.alerting.timeout_seconds,
        )

        if response.status_code != 200:
            raise RuntimeError(f"Slack API error: {response.status_code} - {response.text}")

        logger.info(f"Sent alert to Slack: {alert.title}")
