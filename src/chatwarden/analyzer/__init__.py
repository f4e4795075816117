"""
Content analysis for ChatWarden.

- **content_analyzer.py**: `ContentAnalyzer` interface and the keyword/regex
  `HeuristicContentAnalyzer` (toxicity, sentiment, spam, scam, promotional
  scores, language guess, URL reputation, semantic tags, fingerprints).
- **text_metrics.py**: normalization, entropy-based repetition check,
  capitalization and URL extraction.
- **sentiment.py**: word-list sentiment, including the labelled variant with
  intensifiers.
- **risk_assessment.py**: risk-score to risk-level mapping shared with the
  behavioral layer.
- **patterns.py**: the keyword and regex tables.
"""
