import sqlite3
from datetime import datetime, timezone
from flask import current_app, g


def utc_now():
    """ISO-8601 UTC timestamp used for every created_at/updated_at column."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds')


def get_db():
    """
    Opens a new database connection if there is none yet for the
    current application context.
    """
    if 'db' not in g:
        g.db = sqlite3.connect(current_app.config['DATABASE'], timeout=30)
        g.db.row_factory = sqlite3.Row
        # Needed for the cascading deletes of likes/comments
        g.db.execute('PRAGMA foreign_keys = ON')
    return g.db


def close_db(error=None):
    db = g.pop('db', None)
    if db is not None:
        db.close()


def init_db():
    """
    Initializes the database with the required schema.
    Safe to call repeatedly, every table is CREATE IF NOT EXISTS.
    """
    db = get_db()

    # 1. USERS TABLE
    # Email is the login name, so it has to be unique.
    db.execute('''CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'user',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )''')

    # 2. POSTS TABLE
    # Only admins write posts; author_id is the admin who created it.
    db.execute('''CREATE TABLE IF NOT EXISTS posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        body TEXT NOT NULL,
        author_id INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY(author_id) REFERENCES users(id)
    )''')

    # 3. LIKES TABLE
    # The composite key keeps one like per (post, user) pair.
    db.execute('''CREATE TABLE IF NOT EXISTS post_likes (
        post_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        PRIMARY KEY (post_id, user_id),
        FOREIGN KEY(post_id) REFERENCES posts(id) ON DELETE CASCADE,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    )''')

    # 4. COMMENTS TABLE
    # updated_at stays NULL until the author edits the comment.
    db.execute('''CREATE TABLE IF NOT EXISTS comments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        post_id INTEGER NOT NULL,
        author_id INTEGER NOT NULL,
        text TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT,
        FOREIGN KEY(post_id) REFERENCES posts(id) ON DELETE CASCADE,
        FOREIGN KEY(author_id) REFERENCES users(id)
    )''')

    db.commit()
    print("Database initialized successfully.")


def drop_db():
    """Drops every table. Used by the test-suite to start from a clean slate."""
    db = get_db()
    for table in ('comments', 'post_likes', 'posts', 'users'):
        db.execute(f'DROP TABLE IF EXISTS {table}')
    db.commit()


def init_app(app):
    app.teardown_appcontext(close_db)
