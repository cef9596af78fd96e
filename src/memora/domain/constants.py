"""Centralized constants for the memora engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Scheduler ----------
INITIAL_STABILITY = 1.0
INITIAL_DIFFICULTY = 5.0
MIN_STABILITY = 0.1
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0

AGAIN_STABILITY_FACTOR = 0.5
AGAIN_DIFFICULTY_DELTA = 1.0
HARD_FACTOR = 1.2
HARD_DIFFICULTY_DELTA = 0.15
GOOD_FACTOR = 2.5
EASY_FACTOR = 4.0
EASY_DIFFICULTY_DELTA = 0.15

# ---------- Score -> Grade ----------
EASY_SCORE = 0.9
GOOD_SCORE = 0.7
HARD_SCORE = 0.5

# ---------- Validation cascade ----------
EMBEDDING_THRESHOLD = 0.85
BORDERLINE_THRESHOLD = 0.6

# ---------- Statistics ----------
CORRECT_SCORE_THRESHOLD = 0.7

# ---------- External calls ----------
REQUEST_TIMEOUT = 30.0
SUBSCRIBER_TIMEOUT = 10.0
EMBEDDING_WORKERS = 4

# ---------- OpenAI-compatible backend ----------
OPENAI_BASE_URL = "https://api.openai.com/v1"
EMBEDDING_MODEL = "text-embedding-3-small"
JUDGMENT_MODEL = "gpt-4o-mini"
JUDGMENT_MAX_TOKENS = 10

# ---------- Bulk import ----------
MAX_IMPORT_CARDS = 2_000
