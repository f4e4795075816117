"""
Record and enum types shared across ChatWarden.

- **analysis_datatypes.py**: analyzer score bundle, similarity fingerprint,
  request context and their persisted forms.
- **trust_datatypes.py**: per-user trust profile and trust events.
- **action_datatypes.py**: enforcement actions, decisions, evidence, appeals
  and reports.
- **queue_datatypes.py**: human review queue items.
- **behavior_datatypes.py**: behavior snapshots, content clusters and
  adaptive filter rules.
"""
