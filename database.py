"""
Blog SQLite Database Module

Provides persistent storage for:
- Options (key/value settings, including the data version marker)
- Articles
- Comments
- Users

Repositories work on a caller-supplied connection so that several of them
can share one transaction.
"""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, List, Dict

import config

# Well-known option keys
OPTION_VERSION = 'version'
OPTION_ADMIN_EMAIL = 'adminEmail'


class Repository:
    """Table access bound to an open connection."""

    table = ''
    columns = frozenset()

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, record_id: str) -> Optional[Dict]:
        row = self.conn.execute(
            f"SELECT * FROM {self.table} WHERE id = ?", (record_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_all(self) -> List[Dict]:
        """Get every record in insertion order."""
        rows = self.conn.execute(f"SELECT * FROM {self.table} ORDER BY rowid").fetchall()
        return [dict(row) for row in rows]

    def update(self, record_id: str, record: Dict) -> bool:
        """Write the allowed fields of record back to the row with record_id."""
        updates = {k: v for k, v in record.items() if k in self.columns}
        if not updates:
            return False

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        cursor = self.conn.execute(
            f"UPDATE {self.table} SET {set_clause} WHERE id = ?",
            (*updates.values(), record_id)
        )
        return cursor.rowcount > 0


class OptionRepository(Repository):
    table = 'options'
    columns = frozenset({'option_value', 'option_category'})

    def get_value(self, key: str) -> Optional[str]:
        """Get an option value, or None if the option is absent."""
        option = self.get(key)
        return option['option_value'] if option else None

    def set_value(self, key: str, value: str, category: str = 'preference') -> None:
        self.conn.execute("""
            INSERT INTO options (id, option_value, option_category)
            VALUES (?, ?, ?)
            ON CONFLICT (id) DO UPDATE SET option_value = excluded.option_value
        """, (key, value, category))


class CommentRepository(Repository):
    table = 'comments'
    columns = frozenset({'comment_name', 'comment_content', 'comment_email', 'comment_url'})


class ArticleRepository(Repository):
    table = 'articles'
    columns = frozenset({'article_title', 'article_content', 'article_editor_type'})


class UserRepository(Repository):
    table = 'users'
    columns = frozenset({'user_name', 'user_email', 'user_avatar', 'user_role'})


class BlogDatabase:
    """SQLite database for blog data."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.DB_PATH
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row  # Return dicts instead of tuples
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Open a connection with an explicit transaction.

        Everything executed on the yielded connection is committed together
        when the block exits normally and rolled back if it raises.
        """
        conn = self._get_conn()
        try:
            conn.execute("BEGIN")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_conn()
        conn.executescript("""
            -- Key/value settings (version marker, admin email, ...)
            CREATE TABLE IF NOT EXISTS options (
                id TEXT PRIMARY KEY,
                option_value TEXT,
                option_category TEXT DEFAULT 'preference'
            );

            CREATE TABLE IF NOT EXISTS articles (
                id TEXT PRIMARY KEY,
                article_title TEXT NOT NULL,
                article_content TEXT DEFAULT '',
                article_editor_type TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS comments (
                id TEXT PRIMARY KEY,
                comment_name TEXT,
                comment_content TEXT,
                comment_email TEXT DEFAULT '',
                comment_url TEXT DEFAULT '',
                comment_on_id TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            CREATE INDEX IF NOT EXISTS idx_comments_on ON comments(comment_on_id);

            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                user_name TEXT NOT NULL,
                user_email TEXT UNIQUE NOT NULL,
                user_avatar TEXT DEFAULT '',
                user_role TEXT DEFAULT 'defaultRole'
            );
        """)
        conn.commit()
        conn.close()

    def table_exists(self, name: str) -> bool:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        ).fetchone()
        conn.close()
        return row is not None

    def rename_table(self, name: str, new_name: str) -> None:
        """Rename a table. Committed immediately."""
        with self._connection() as conn:
            conn.execute(f'ALTER TABLE "{name}" RENAME TO "{new_name}"')

    def drop_table(self, name: str) -> None:
        with self._connection() as conn:
            conn.execute(f'DROP TABLE IF EXISTS "{name}"')

    # ==================== OPTIONS ====================

    def get_option(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        value = OptionRepository(conn).get_value(key)
        conn.close()
        return value

    def set_option(self, key: str, value: str, category: str = 'preference') -> None:
        with self._connection() as conn:
            OptionRepository(conn).set_value(key, value, category)

    # ==================== ARTICLES ====================

    def create_article(self, title: str, content: str = '', editor_type: Optional[str] = None) -> str:
        """Create an article. Returns the new ID."""
        article_id = str(uuid.uuid4())
        with self._connection() as conn:
            conn.execute("""
                INSERT INTO articles (id, article_title, article_content, article_editor_type, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (article_id, title, content, editor_type, datetime.now().isoformat()))
        return article_id

    def get_article(self, article_id: str) -> Optional[Dict]:
        conn = self._get_conn()
        article = ArticleRepository(conn).get(article_id)
        conn.close()
        return article

    def get_all_articles(self) -> List[Dict]:
        conn = self._get_conn()
        articles = ArticleRepository(conn).get_all()
        conn.close()
        return articles

    # ==================== COMMENTS ====================

    def create_comment(self, name: str, content: str, email: str = '', url: str = '',
                       on_id: Optional[str] = None) -> str:
        """Create a comment. Returns the new ID."""
        comment_id = str(uuid.uuid4())
        with self._connection() as conn:
            conn.execute("""
                INSERT INTO comments (id, comment_name, comment_content, comment_email,
                                      comment_url, comment_on_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (comment_id, name, content, email, url, on_id, datetime.now().isoformat()))
        return comment_id

    def get_comment(self, comment_id: str) -> Optional[Dict]:
        conn = self._get_conn()
        comment = CommentRepository(conn).get(comment_id)
        conn.close()
        return comment

    def get_all_comments(self) -> List[Dict]:
        conn = self._get_conn()
        comments = CommentRepository(conn).get_all()
        conn.close()
        return comments

    # ==================== USERS ====================

    def create_user(self, name: str, email: str, role: str = 'defaultRole') -> str:
        """Create a user. Returns the new ID."""
        user_id = str(uuid.uuid4())
        with self._connection() as conn:
            conn.execute("""
                INSERT INTO users (id, user_name, user_email, user_role)
                VALUES (?, ?, ?, ?)
            """, (user_id, name, email, role))
        return user_id

    def get_user(self, user_id: str) -> Optional[Dict]:
        conn = self._get_conn()
        user = UserRepository(conn).get(user_id)
        conn.close()
        return user

    def get_all_users(self) -> List[Dict]:
        conn = self._get_conn()
        users = UserRepository(conn).get_all()
        conn.close()
        return users


# Singleton instance for easy import
_db_instance = None

def get_db(db_path: Optional[str] = None) -> BlogDatabase:
    """Get or create the database instance."""
    global _db_instance
    if _db_instance is None or db_path:
        _db_instance = BlogDatabase(db_path)
    return _db_instance
