"""
Database package for ChatWarden.

Provides the persistence contract the moderation core depends on and a
SQLite implementation of it.

Public API:
    - ModerationStore: Protocol every store implements (store.py)
    - SQLiteModerationStore: aiosqlite-backed store (sqlite_store.py)
    - ConnectionManager: single-connection manager with serialized writes
"""
