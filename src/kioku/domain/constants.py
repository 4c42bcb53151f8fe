"""Centralized constants for the kioku engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Review record domains ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 4.0
MIN_DIFFICULTY_ADJUSTMENT = -1.0
MAX_DIFFICULTY_ADJUSTMENT = 1.0
MIN_QUALITY = 0
MAX_QUALITY = 5
CORRECT_QUALITY_THRESHOLD = 3

# ---------- Interval ladder ----------
INITIAL_INTERVAL = 1
SECOND_INTERVAL = 6
SECONDS_PER_DAY = 86400

# ---------- Mastery ----------
MASTERY_EASE_FLOOR = 1.3
MASTERY_EASE_CEILING = 3.0
MASTERY_INTERVAL_CAP_DAYS = 30
MASTERED_THRESHOLD = 0.8
STRUGGLING_THRESHOLD = 0.3

# ---------- Session composition ----------
DUE_SESSION_PERCENT = 70
MAX_DAILY_NEW_CARDS = 20
SHUFFLE_CHUNK_SIZE = 3
NEW_CARD_JITTER = 0.5

# ---------- Personalized categories ----------
MAX_REVIEW_RECOMMENDATIONS = 20
MAX_NEW_RECOMMENDATIONS = 10
MAX_CHALLENGE_RECOMMENDATIONS = 5
MAX_REINFORCEMENT_RECOMMENDATIONS = 8
CHALLENGE_MASTERY_GATE = 0.7
CHALLENGE_MIN_DIFFICULTY = 3.0
CHALLENGE_MIN_TIER = 2
CHALLENGE_PRIORITY = 0.8
REINFORCEMENT_MASTERY_CEILING = 0.5
REINFORCEMENT_MIN_REVIEWS = 2

# ---------- Session sizing ----------
BASE_SESSION_SIZE = 10
MIN_SESSION_SIZE = 5
MAX_SESSION_SIZE = 25
DEFAULT_RECENT_ACCURACY = 0.7

# ---------- Analytics ----------
DEFAULT_WINDOW_DAYS = 30
MAX_WEAK_TOPICS = 3
MAX_WEAK_LEVELS = 2
