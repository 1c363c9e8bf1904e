"""Shared pytest fixtures for the blog upgrade tests."""
import os
import tempfile
from pathlib import Path

# Keep the module-level database used by app.py out of the source tree
os.environ.setdefault('BLOG_DB_PATH', str(Path(tempfile.gettempdir()) / 'blog_upgrade_test.db'))

import pytest
from unittest.mock import Mock

from database import BlogDatabase, OPTION_ADMIN_EMAIL, OPTION_VERSION
from migrations.notify import NotificationGate
from migrations.runner import UpgradeOrchestrator
from migrations.versions.v1_2_0_to_1_2_1 import Migration

ADMIN_EMAIL = 'admin@example.com'


@pytest.fixture
def test_db(tmp_path):
    """Create a temporary test database with fresh schema."""
    db_path = tmp_path / "test.db"
    db = BlogDatabase(str(db_path))
    return db


@pytest.fixture
def legacy_db(test_db):
    """A database as left by a 1.2.0 installation."""
    test_db.set_option(OPTION_VERSION, '1.2.0')
    test_db.set_option(OPTION_ADMIN_EMAIL, ADMIN_EMAIL)
    with test_db._connection() as conn:
        conn.execute("""
            CREATE TABLE blog_preference (
                id TEXT PRIMARY KEY,
                blogTitle TEXT,
                adminEmail TEXT
            )
        """)
        conn.execute(
            "INSERT INTO blog_preference (id, blogTitle, adminEmail) VALUES (?, ?, ?)",
            ('preference', 'My Blog', ADMIN_EMAIL)
        )
    return test_db


@pytest.fixture
def mailer():
    """Mail sender that records messages instead of sending them."""
    return Mock()


@pytest.fixture
def orchestrator(legacy_db, mailer):
    """Orchestrator over the 1.2.0 database with a mocked mailer."""
    return UpgradeOrchestrator(
        legacy_db,
        gate=NotificationGate(mailer),
        step=Migration(table_prefix='blog'),
        locale='en_US',
    )


@pytest.fixture
def sample_comments(legacy_db):
    """Comments in the 1.2.0 storage format."""
    ids = [
        legacy_db.create_comment('<b>Bob</b>', 'Hello_esc_enter_88250_World'),
        legacy_db.create_comment('Alice', '**bold** &lt;script&gt;alert(1)&lt;/script&gt;'),
        legacy_db.create_comment('Eve<script>x()</script>', 'plain text'),
    ]
    return ids
