"""
Shared test constants.
"""

from zoneinfo import ZoneInfo


BERLIN = ZoneInfo("Europe/Berlin")

# 2024-06-15 12:00 UTC (14:00 in Berlin)
NOON_MS = 1718452800000
MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS

GUILD = 111
USER = 222
