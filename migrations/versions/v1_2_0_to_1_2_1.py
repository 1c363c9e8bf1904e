"""
1.2.0 -> 1.2.1: retire the legacy preference table and re-render comments.

This step:
1. Renames <prefix>_preference to a backup table (outside the main transaction)
2. Sets the version marker to 1.2.1
3. Strips markup from every comment author name
4. Re-renders every comment body: entities unescaped, legacy line-break
   tokens turned into newlines, Markdown rendered, HTML sanitized
Steps 2-4 share one transaction.

The chunked article and user upgrades below backfill fields that older
releases left empty. They are run on demand rather than by perform().
"""

import logging
from enum import Enum

import config
from content import gravatar_url, render_markdown, sanitize_relaxed, sanitize_strict, unescape_entities
from database import OPTION_VERSION, ArticleRepository, CommentRepository, OptionRepository, UserRepository
from migrations.batch import STEP, BatchReport, BatchTransactionExecutor
from migrations.decision import FROM_VERSION, TO_VERSION

logger = logging.getLogger(__name__)

# Stored by 1.2.0 in place of line breaks in comment bodies
LEGACY_LINE_BREAK = "_esc_enter_88250_"

DEFAULT_EDITOR_TYPE = "tinyMCE"


class StepState(Enum):
    IDLE = 'idle'
    STRUCTURAL_CHANGE_APPLIED = 'structural_change_applied'
    CONTENT_REWRITE_IN_PROGRESS = 'content_rewrite_in_progress'
    COMMITTED = 'committed'
    ROLLED_BACK = 'rolled_back'


class MigrationError(Exception):
    """A migration step failed and its transaction was rolled back."""

    def __init__(self, from_version: str, to_version: str, cause: Exception,
                 structural_change_applied: bool = False, backup_table: str = None):
        self.from_version = from_version
        self.to_version = to_version
        self.cause = cause
        self.structural_change_applied = structural_change_applied
        self.backup_table = backup_table
        super().__init__(f"Upgrade failed from version [{from_version}] to version [{to_version}]: {cause}")


def rewrite_comment_content(content: str) -> str:
    """Convert a 1.2.0 comment body to sanitized HTML."""
    content = unescape_entities(content).replace(LEGACY_LINE_BREAK, "\n")
    content = render_markdown(content)
    return sanitize_relaxed(content)


class Migration:
    from_version = FROM_VERSION
    to_version = TO_VERSION

    def __init__(self, table_prefix: str = None):
        self.table_prefix = table_prefix or config.TABLE_PREFIX
        self.state = StepState.IDLE
        self.structural_change_applied = False

    @property
    def legacy_table(self) -> str:
        return f"{self.table_prefix}_preference"

    @property
    def backup_table(self) -> str:
        return f"{self.legacy_table}_{self.from_version.replace('.', '_')}_backup"

    def perform(self, db) -> None:
        """Run the step. Raises MigrationError if anything fails."""
        logger.info(f"Upgrading from version [{self.from_version}] to version [{self.to_version}]....")
        self.state = StepState.IDLE
        self.structural_change_applied = False

        try:
            self._retire_legacy_table(db)
            # A backup left by an earlier failed run counts as an applied change
            self.structural_change_applied = db.table_exists(self.backup_table)
            if self.structural_change_applied:
                self.state = StepState.STRUCTURAL_CHANGE_APPLIED

            with db.transaction() as conn:
                self.state = StepState.CONTENT_REWRITE_IN_PROGRESS
                self._update_version_marker(conn)
                count = self._rewrite_comments(conn)
        except Exception as e:
            if self.state is not StepState.IDLE:
                self.state = StepState.ROLLED_BACK
            raise MigrationError(
                self.from_version, self.to_version, e,
                structural_change_applied=self.structural_change_applied,
                backup_table=self.backup_table if self.structural_change_applied else None,
            ) from e

        self.state = StepState.COMMITTED
        logger.info(f"Rewrote {count} comment(s)")
        logger.info(f"Upgraded from version [{self.from_version}] to version [{self.to_version}] successfully")

    def _retire_legacy_table(self, db) -> None:
        """Move the legacy preference table aside. Committed on its own."""
        if not db.table_exists(self.legacy_table):
            logger.info(f"No {self.legacy_table} table found, nothing to retire")
            return

        db.rename_table(self.legacy_table, self.backup_table)
        logger.info(f"Renamed {self.legacy_table} to {self.backup_table}")

    def _update_version_marker(self, conn) -> None:
        options = OptionRepository(conn)
        current = options.get_value(OPTION_VERSION)
        if current != self.from_version:
            raise RuntimeError(
                f"Version marker changed to [{current}] before the upgrade could start, "
                f"expected [{self.from_version}]"
            )
        options.set_value(OPTION_VERSION, self.to_version)
        logger.debug(f"Version marker set to {self.to_version} (uncommitted)")

    def _rewrite_comments(self, conn) -> int:
        comments = CommentRepository(conn)
        records = comments.get_all()

        for comment in records:
            comment['comment_name'] = sanitize_strict(comment.get('comment_name') or '')
            comment['comment_content'] = rewrite_comment_content(comment.get('comment_content') or '')
            comments.update(comment['id'], comment)

        return len(records)

    def drop_legacy_backup(self, db) -> bool:
        """Physically drop the backup table once the upgrade is known good."""
        if not db.table_exists(self.backup_table):
            return False

        db.drop_table(self.backup_table)
        logger.info(f"Dropped {self.backup_table}")
        return True


def upgrade_articles(db, chunk_size: int = STEP, start: int = 0) -> BatchReport:
    """Set the editor type on every article, committing chunk_size articles at a time."""
    logger.info("Adds a property [article_editor_type] to each of articles")

    articles = db.get_all_articles()
    if not articles:
        logger.debug("No articles")
        return BatchReport(total=0, chunk_size=chunk_size)

    def set_editor_type(conn, article):
        article['article_editor_type'] = DEFAULT_EDITOR_TYPE
        ArticleRepository(conn).update(article['id'], article)

    return BatchTransactionExecutor(db).run_chunked(articles, chunk_size, set_editor_type, start=start)


def upgrade_users(db, chunk_size: int = STEP, start: int = 0) -> BatchReport:
    """Fill in each user's avatar URL from their email."""
    users = db.get_all_users()

    def set_avatar(conn, user):
        user['user_avatar'] = gravatar_url(user['user_email'], "128")
        UserRepository(conn).update(user['id'], user)
        logger.debug(f"Updated user[email={user['user_email']}]")

    return BatchTransactionExecutor(db).run_chunked(users, chunk_size, set_avatar, start=start)
