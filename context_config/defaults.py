"""Default configuration values."""

# Token budget
DEFAULT_TOKEN_LIMIT = 100000
CHARS_PER_TOKEN = 4  # ~4 characters per token for English text

# Health thresholds
UTILIZATION_WARNING_PERCENT = 70.0
UTILIZATION_CRITICAL_PERCENT = 90.0
DRIFT_WARNING = 0.3
DRIFT_CRITICAL = 0.6

# Compaction Configuration
DEFAULT_PRESERVE_RECENT = 5  # Keep last N chunks intact on manual compaction
AUTO_COMPACT_PRESERVE_RECENT = 10
SUMMARY_COMPRESSION_RATIO = 0.7  # Assumed savings on summarized chunks in a dry run
SUMMARY_MAX_SENTENCES = 3
SUMMARY_MIN_SENTENCE_CHARS = 10

RELEVANCE_THRESHOLDS = {
    "summarize": 0.5,
    "selective": 0.3,
    "aggressive": 0.2,
}

# Target utilization chosen by auto-compaction for each health level
AUTO_COMPACT_PLAN = {
    "critical": ("aggressive", 40.0),
    "warning": ("selective", 50.0),
    "good": ("summarize", 60.0),
}

# Drift Configuration
MAX_HISTORY_MESSAGES = 200
REQUIREMENT_CAPTURE_USER_MESSAGES = 5
DRIFT_WINDOW_MESSAGES = 10
MAX_CONTRADICTIONS = 5
MAX_REMINDERS_PER_SOURCE = 3

# Sentence scoring weights (relative ordering matters, not the exact values)
SENTENCE_LENGTH_WEIGHT = 1.0
SENTENCE_KEYWORD_WEIGHT = 0.5
SENTENCE_TECHNICAL_WEIGHT = 0.3
SENTENCE_MIN_WORDS = 5
SENTENCE_MAX_WORDS = 30

# Persistence
DEFAULT_DATABASE_PATH = ".context_rot/context.db"
HEALTH_HISTORY_LIMIT = 20
