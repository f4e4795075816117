"""
Utility functions and helpers for ChatWarden.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Silences chatty
  library loggers (aiosqlite, asyncio). Uses prompt_toolkit so log output does
  not interfere with an interactive terminal.

- **time_utils.py**: UTC timestamps, ISO serialization for the store, and
  opaque identifier generation.
"""
