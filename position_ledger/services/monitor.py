"""Health monitoring for watched accounts — classification, logs and alerts."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

from ..config import AppConfig, WatchedAccount
from ..fixed_point import is_zero
from ..interfaces.notifier import Notifier
from ..models import AccountSummary
from .reporter import AccountReporter

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    NO_DEBT = "NO_DEBT"
    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


_STATUS_LABELS = {
    HealthStatus.NO_DEBT: "➖ No debt",
    HealthStatus.HEALTHY: "✅ Healthy",
    HealthStatus.WARNING: "⚠️ WARNING",
    HealthStatus.CRITICAL: "🚨 CRITICAL",
}


class HealthMonitor:
    """Evaluate every watched account and notify on low health."""

    def __init__(
        self,
        config: AppConfig,
        reporter: AccountReporter,
        notifiers: list[Notifier],
    ) -> None:
        self._config = config
        self._thresholds = config.monitor.thresholds
        self._unit = config.ledger.reference_unit
        self._reporter = reporter
        self._notifiers = notifiers

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_address(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def classify(self, summary: AccountSummary) -> HealthStatus:
        # A fully repaid account reports raw collateral as its health, which
        # is not a ratio and must not be compared with the thresholds.
        if summary.health is None or is_zero(summary.total_borrow_value):
            return HealthStatus.NO_DEBT
        if summary.health < self._thresholds.health_critical:
            return HealthStatus.CRITICAL
        if summary.health < self._thresholds.health_warning:
            return HealthStatus.WARNING
        return HealthStatus.HEALTHY

    def _describe(self, watched: WatchedAccount, summary: AccountSummary) -> str:
        status = self.classify(summary)
        health = (
            "n/a"
            if status is HealthStatus.NO_DEBT
            else f"{summary.health:.4f}"
        )
        return (
            f"{watched.label or self._format_address(watched.address)} · "
            f"{_STATUS_LABELS[status]}\n"
            f"  Collateral: {summary.total_collateral_value:,.6f} {self._unit}\n"
            f"  Borrowed: {summary.total_borrow_value:,.6f} {self._unit}\n"
            f"  Health: {health} · Positions: {summary.position_count}"
        )

    def _build_alert(
        self, watched: WatchedAccount, summary: AccountSummary, status: HealthStatus
    ) -> str:
        advice = (
            "Liquidation is close. Repay debt or add collateral now."
            if status is HealthStatus.CRITICAL
            else "Health is below the warning threshold."
        )
        return (
            f"{_STATUS_LABELS[status]} — health {summary.health:.4f}\n"
            f"\n"
            f"{self._describe(watched, summary)}\n"
            f"\n"
            f"{advice}\n"
            f"\n"
            f"Account: {self._format_address(watched.address)}\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def check_and_alert(self) -> dict[str, HealthStatus]:
        """Check every watched account; alert on WARNING and CRITICAL."""
        results: dict[str, HealthStatus] = {}

        for watched in self._config.monitor.accounts:
            summary = self._reporter.summary(watched.address)
            status = self.classify(summary)
            results[watched.address] = status

            logger.info(
                "Account %s · collateral %s · borrowed %s · health %s · %s",
                watched.label or watched.address,
                summary.total_collateral_value,
                summary.total_borrow_value,
                summary.health,
                status.value,
            )
            await self._send_log(self._describe(watched, summary))

            if status is HealthStatus.CRITICAL:
                await self._send_alert(
                    self._build_alert(watched, summary, status),
                    subject="🚨 CRITICAL: Liquidation Risk!",
                )
            elif status is HealthStatus.WARNING:
                await self._send_alert(
                    self._build_alert(watched, summary, status),
                    subject="⚠️ WARNING: Low Health",
                )

        return results

    async def generate_report(self) -> str:
        """Send one report covering every watched account and return it."""
        sections = [
            self._describe(watched, self._reporter.summary(watched.address))
            for watched in self._config.monitor.accounts
        ]
        body = "\n\n".join(sections) if sections else "No watched accounts configured."
        report = (
            f"📋 Lending Health Report\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )
        await self._send_alert(report)
        logger.info("Health report sent for %d accounts", len(sections))
        return report
