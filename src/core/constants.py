"""
CampfireBot - Shared Constants
==============================

Centralized constants for the entire codebase.
Import from here instead of defining locally.
"""


# =============================================================================
# Time
# =============================================================================

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


# =============================================================================
# Chat XP
# =============================================================================

CHAT_XP_PER_WORD = 0.1
CHAT_SPAM_WINDOW_MS = 5 * MS_PER_MINUTE   # Messages closer than this stack saturation
CHAT_REDUCTION_BASE = 0.1                 # Each stacked message keeps 10% of the previous rate
CHAT_REDUCTION_FLOOR = 0.001              # Never below 0.1% of base
CHAT_RECOVERY_PERIOD_MS = MS_PER_HOUR     # One saturation step recovered per idle hour


# =============================================================================
# Voice XP
# =============================================================================

VOICE_XP_PER_MINUTE = 1.0
VOICE_WINDOW_MINUTES = 5                  # Every 5 recent minutes halves the rate
VOICE_REDUCTION_BASE = 0.5
VOICE_REDUCTION_FLOOR = 0.0001
VOICE_RECOVERY_PERIOD_MS = MS_PER_HOUR
VOICE_RECOVERY_MINUTES = 5                # Minutes of saturation recovered per idle hour
VOICE_MINUTE_CAP = 50


# =============================================================================
# Shared XP
# =============================================================================

MIN_XP_GAIN = 0.0001
STATUS_BONUS_MULTIPLIER = 2.0             # Displaying the server tag doubles XP
DAILY_BONUS_XP = 10.0
RESULT_PRECISION = 4                      # Decimal places on returned XP values


# =============================================================================
# Leaderboards
# =============================================================================

LEVELBOARD_HEADER = "LEVEL SCOREBOARD:"
LEVEL_ROLE_PREFIX = "Level "
SCOREBOARD_SCAN_LIMIT = 50                # Recent messages checked per channel on startup


# =============================================================================
# Interactions
# =============================================================================

INTERACTION_TTL = 5 * 60                  # Seconds a handled interaction id is remembered
