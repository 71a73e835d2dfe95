"""Centralized constants for the mnemos analytics engine.

All magic numbers and formula defaults live here so every layer
imports from a single source of truth. `AnalyticsConfig` uses the
tunable ones as its defaults.
"""

# ---------- Performance Index ----------
WEIGHT_PRECISION = 0.30
WEIGHT_CONSISTENCY = 0.25
WEIGHT_EFFICIENCY = 0.20
WEIGHT_SPEED = 0.15
WEIGHT_DIFFICULTY = 0.10

# (max seconds per word, score); first bucket whose bound is >= the value wins
SPEED_STEPS: tuple[tuple[float, int], ...] = (
    (3.0, 100),
    (5.0, 90),
    (8.0, 80),
    (12.0, 70),
    (16.0, 60),
    (20.0, 50),
    (25.0, 40),
)
SPEED_FLOOR_SCORE = 30
SPEED_EMPTY_SCORE = 50

STREAK_THRESHOLD = 75
LARGE_SESSION_WORDS = 20
DIFFICULTY_BONUS = 10
DEFAULT_DIFFICULTY_SCORE = 70
TREND_HALF_MAX = 5
VELOCITY_WINDOW = 5
RECENT_PERFORMANCE_WINDOW = 10

# ---------- Timeline ----------
TIMELINE_WINDOW = 20
CHART_WINDOW = 10

# Estimated seconds/word when a session carries no total time
BASELINE_SECONDS_PER_WORD = 8.0
DIFFICULTY_TIME_MULTIPLIERS = {"hard": 1.5, "easy": 0.7}
HINT_TIME_MULTIPLIER = 1.2
# (percentage below, multiplier); sessions at or above the last bound use 0.8
PERFORMANCE_TIME_MULTIPLIERS: tuple[tuple[float, float], ...] = (
    (50.0, 1.8),
    (70.0, 1.3),
    (85.0, 1.0),
)
TOP_PERFORMANCE_TIME_MULTIPLIER = 0.8

HINT_SHARE_THRESHOLD = 0.5

# ---------- Word aggregation ----------
RECENT_ATTEMPTS_WINDOW = 5
MIN_ATTEMPTS_FOR_STATUS = 3
MIN_ATTEMPTS_FOR_TREND = 4
WORD_TREND_DELTA = 10.0

# ---------- Trend analysis ----------
WMA_WEIGHTS: tuple[float, ...] = (0.1, 0.15, 0.2, 0.25, 0.3)
STABILITY_WINDOW = 10
DIRECTION_THRESHOLD = 0.1
MIN_SESSIONS_FOR_VELOCITY = 5
MIN_WORDS_FOR_PATTERNS = 10
MIN_TESTS_PER_BUCKET = 2
RECENT_DAYS = 30

# ---------- Insights ----------
STRONG_ACCURACY = 80
STRONG_CONSISTENCY = 75
STRONG_HINT_EFFICIENCY = 80
STRONG_SPEED = 80
WEAK_ACCURACY = 70
WEAK_CONSISTENCY = 60
WEAK_HINT_EFFICIENCY = 70
WEAK_SPEED = 60
OUTSTANDING_INDEX = 85
GREAT_INDEX = 75
GOOD_INDEX = 65

# ---------- Projections ----------
PROJECTION_HORIZONS: tuple[int, ...] = (7, 30, 60, 90)
MIN_POINTS_FOR_PROJECTION = 3
MIN_CONFIDENCE = 10
UNCERTAINTY_SCALE = 0.2
WORDS_PER_WEEK = 10
TESTS_PER_WEEK = 3
STUDY_HOURS_PER_WEEK = 2.5

# (accuracy threshold, label, fraction of horizon, heuristic probability)
MILESTONES: tuple[tuple[int, str, float, int], ...] = (
    (70, "Intermediate proficiency", 0.3, 85),
    (85, "Advanced proficiency", 0.7, 75),
)

# ---------- Learner profile ----------
DEFAULT_PEAK_HOURS: tuple[int, ...] = (9, 14, 20)
DEFAULT_SESSION_MINUTES = 20
INSUFFICIENT_SESSION_MINUTES = 15
MIN_SESSION_MINUTES = 10
MAX_SESSION_MINUTES = 45

NO_CHAPTER_LABEL = "No chapter"
NO_CHAPTER_FILTER = "no-chapter"
