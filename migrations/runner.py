"""
Upgrade orchestrator.

Checks the data version stored in the options table against the version of
this build and, when the installation is exactly one release behind, runs the
single supported migration step. Installations that skipped releases are not
migrated; the administrator is mailed once instead.

Never raises: every outcome is returned as an UpgradeResult and failures are
reported through the log.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

import config
import lang
from database import OPTION_ADMIN_EMAIL, OPTION_VERSION, get_db
from mailer import get_mailer
from migrations.decision import TO_VERSION, Decision, decide
from migrations.notify import NotificationGate
from migrations.versions.v1_2_0_to_1_2_1 import Migration, MigrationError

logger = logging.getLogger(__name__)


class UpgradeOutcome(Enum):
    NOT_INSTALLED = 'not_installed'
    UP_TO_DATE = 'up_to_date'
    PERFORMED = 'performed'
    SKIPPED = 'skipped'
    FAILED = 'failed'


@dataclass
class UpgradeResult:
    outcome: UpgradeOutcome
    installed_version: Optional[str] = None
    target_version: str = TO_VERSION
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        result = asdict(self)
        result['outcome'] = self.outcome.value
        return result


class UpgradeOrchestrator:
    """Decides on and runs the upgrade for one database."""

    def __init__(self, db, mailer=None, gate: NotificationGate = None, step: Migration = None,
                 locale: str = None):
        self.db = db
        self.gate = gate or NotificationGate(mailer or get_mailer())
        self.step = step or Migration()
        self.locale = locale or config.LOCALE
        self.last_result: Optional[UpgradeResult] = None

    def run(self) -> UpgradeResult:
        """Upgrade if needed."""
        try:
            result = self._run()
        except Exception as e:
            logger.exception(f"Upgrade check failed: {e}")
            result = UpgradeResult(UpgradeOutcome.FAILED, reason=str(e))

        self.last_result = result
        return result

    def _run(self) -> UpgradeResult:
        installed = self.db.get_option(OPTION_VERSION)
        if installed is None:
            logger.debug("No version marker found, nothing to upgrade")
            return UpgradeResult(UpgradeOutcome.NOT_INSTALLED)

        decision = decide(installed, self.step.to_version, self.step.from_version)

        if decision is Decision.UP_TO_DATE:
            logger.debug(f"Data is up to date (version {installed})")
            return UpgradeResult(UpgradeOutcome.UP_TO_DATE, installed)

        if decision is Decision.PERFORM_DIRECT:
            return self._perform(installed)

        logger.warning(
            f"Attempt to skip more than one version to upgrade. "
            f"Expected: {self.step.from_version}; Actually: {installed}"
        )
        self._notify_skip()
        return UpgradeResult(
            UpgradeOutcome.SKIPPED, installed,
            reason=f"Installed version {installed} is not the supported predecessor {self.step.from_version}"
        )

    def _perform(self, installed: str) -> UpgradeResult:
        try:
            self.step.perform(self.db)
        except MigrationError as e:
            logger.critical(
                f"Upgrade failed from version [{e.from_version}] to version [{e.to_version}]: "
                f"{e.cause!r}. The data was left at version {installed}; please report this issue.",
                exc_info=e,
            )
            if e.structural_change_applied:
                logger.critical(
                    f"Inconsistent installation: {self.step.legacy_table} was already moved to "
                    f"{e.backup_table} but the version marker is still {installed}. Rename it back "
                    f"or rerun the upgrade; do not drop the backup table."
                )
            return UpgradeResult(UpgradeOutcome.FAILED, installed, reason=str(e))

        return UpgradeResult(UpgradeOutcome.PERFORMED, installed)

    def _notify_skip(self) -> None:
        if self.gate.sent:
            return

        admin_email = self.db.get_option(OPTION_ADMIN_EMAIL)
        if not admin_email:
            logger.warning("No admin email configured, cannot send skip-version notification")
            return

        self.gate.notify_once(
            admin_email,
            lang.get('skipVersionMailSubject', self.locale),
            lang.get('skipVersionMailBody', self.locale),
            sender=admin_email,
        )


# Process-wide orchestrator so the send-once guard lives as long as the process
_orchestrator = None

def get_orchestrator(db=None) -> UpgradeOrchestrator:
    """Get or create the orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = UpgradeOrchestrator(db or get_db())
    elif db is not None:
        _orchestrator.db = db
    return _orchestrator


def upgrade(db=None) -> UpgradeResult:
    """Upgrade the data if needed. Call once at startup, before serving requests."""
    return get_orchestrator(db).run()
