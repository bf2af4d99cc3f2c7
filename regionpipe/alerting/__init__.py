"""
Regional Leaderboards - Alerting

Run-summary alerts routed by severity to the log and Slack.
"""

from regionpipe.alerting.alert_manager import (
    Alert,
    AlertChannel,
    AlertManager,
    AlertSeverity,
)

__all__ = [
    "Alert",
    "AlertChannel",
    "AlertManager",
    "AlertSeverity",
]
