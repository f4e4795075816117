"""
Background scheduling for ChatWarden.

- **periodic_task.py**: `PeriodicTask`, a supervised interval loop used for the
  behavior sweep, adaptive-rule maintenance and expired-action cleanup.
"""
