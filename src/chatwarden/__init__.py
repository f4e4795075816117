"""
ChatWarden - Automated Content Moderation for Real-Time Chat

ChatWarden scores every posted message for toxicity, spam, scam intent and
promotional content, weighs the result against the author's trust profile
and recent behavior, and maps it to an enforcement decision within the
message-post request.

Core Components:

- **Content Analyzer**: Heuristic multi-language scoring of a single message,
  plus a hash-based fingerprint for duplicate detection
- **Behavioral Layer**: User behavior risk, near-duplicate clustering and
  self-tuning adaptive filter rules that learn from moderator feedback
- **Decision Engine**: Risk fusion, enforcement actions, human review queue,
  appeal adjudication and trust-score bookkeeping
- **Store**: Persistence contract with an aiosqlite implementation
- **Interactive Console**: Operator console for status checks, test
  moderation and graceful shutdown
"""

__version__ = "0.0.1"
