"""
Behavioral and adaptive analysis for ChatWarden.

- **behavioral_layer.py**: `BehavioralLayer` interface and
  `AdaptiveBehavioralLayer`, which combine analyzer output with user behavior
  risk, duplicate clustering and adaptive rules, and learn from moderator
  feedback.
- **clustering.py**: near-duplicate content clusters keyed on semantic hashes.
- **adaptive_rules.py**: self-tuning pattern/keyword/semantic rules.
- **ttl_cache.py**: TTL cache holding per-user behavior snapshots.
"""
