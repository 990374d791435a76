"""
scoring/: Story Assessment & Integrity Scoring Engine

Modules:
    utils.py                  - Decimal utilities (clamp, weighted mean)
    text_features.py          - Text partitioning into words/sentences/paragraphs
    category_scorers.py       - Per-category rule-based scorers + registry
    plagiarism_detector.py    - Originality score from phrase/source patterns
    ai_detector.py            - Human-likeness score from patterns + stylometrics
    integrity_classifier.py   - Risk tier + disposition rule table
    feedback.py               - Strengths, improvements and teacher comment
    assessment_engine.py      - compute_assessment() + fallback path
"""
