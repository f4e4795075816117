"""
Decision Engine package.

- **decision_engine.py**: `DecisionEngine` interface and `AutomatedDecisionEngine`,
  the entry point for message moderation, appeals, trust updates and status checks.
- **risk_fusion.py**: fused risk score, room modifiers and the action threshold table.
- **trust_scoring.py**: trust event deltas and the pure trust-level derivation.
- **appeals.py**: appeal merit rules and restore actions.
- **review_queue.py**: human review queue lifecycle.
"""
