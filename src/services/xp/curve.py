"""
XP System - Level Curve
=======================

Fixed level table (ARK: Survival Ascended player levels) and lookups.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple


# Minimum cumulative XP for each level, index 0 = level 1
ARK_XP_TABLE: Tuple[int, ...] = (
    0, 26, 54, 89, 131, 181, 239, 306, 381, 466, 560, 665, 780, 907, 1045, 1196, 1360, 1537, 1727, 1932,
    2151, 2385, 2635, 2901, 3184, 3485, 3805, 4144, 4504, 4885, 5288, 5714, 6163, 6637, 7136, 7661, 8213, 8793, 9402, 10041,
    10711, 11413, 12148, 12917, 13721, 14561, 15438, 16353, 17308, 18304, 19342, 20423, 21549, 22721, 23940, 25209, 26528, 27899, 29324, 30805,
    32342, 33938, 35595, 37314, 39097, 40946, 42863, 44849, 46907, 49039, 51246, 53530, 55893, 58337, 60864, 63476, 66175, 68963, 71842, 74815,
    77883, 81049, 84315, 87683, 91156, 94736, 98425, 102226, 106142, 110175, 114328, 118603, 123003, 127530, 132188, 136979, 141906, 146972, 152181, 157535,
    163038, 168693, 174503, 180471, 186600, 192894, 199356, 205990, 212799, 219787, 226958, 234315, 241863, 249606, 257548, 265693, 274045, 282609, 291389, 300390,
    309616, 319072, 328762, 338691, 348864, 359285, 369960, 380894, 392092, 403559, 415300, 427321, 439628, 452226, 465121, 478318, 491824, 505644, 519785, 534252,
    549052, 564191, 579675, 595512, 611707, 628267, 645200, 662512, 680211, 698304, 716798, 735701, 755021, 774766, 794944, 815563, 836631, 858158, 880152, 902622,
    925577, 949027, 972982, 997451, 1022444, 1047971, 1074043, 1100670, 1127863, 1155633, 1183991, 1212949, 1242518, 1272710, 1303537, 1335010, 1367142, 1399946, 1433434, 1467619,
    1502515, 1538135, 1574493, 1611603, 1649480, 1688138, 1727592, 1767857, 1808949, 1850883, 1893675, 1937341, 1981897, 2027359, 2073743, 2121066, 2169345, 2218597, 2268840, 2320092,
    2372375, 2425710, 2480118, 2535622, 2592244, 2650007, 2708934, 2769048, 2830374, 2892936, 2956759, 3021868, 3088289, 3156048, 3225172, 3295688, 3367623, 3441005, 3515862, 3592223,
)


@dataclass(frozen=True)
class LevelProgress:
    """Where a user sits between their current and next level."""

    level: int
    into_level: float
    needed: float
    fraction: float


class LevelCurve:
    """Immutable mapping between level and minimum cumulative XP."""

    def __init__(self, thresholds: Sequence[float]) -> None:
        if not thresholds or thresholds[0] != 0:
            raise ValueError("Level 1 threshold must be 0")
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError("Level thresholds must be strictly increasing")
        self._thresholds: Tuple[float, ...] = tuple(thresholds)

    @property
    def max_level(self) -> int:
        return len(self._thresholds)

    def threshold_for(self, level: int) -> float:
        """Minimum cumulative XP for a level (saturates past the table)."""
        if level <= 0:
            return 0
        if level >= len(self._thresholds):
            return self._thresholds[-1]
        return self._thresholds[level - 1]

    def level_for(self, xp: float) -> int:
        """Highest level whose threshold is at or below xp."""
        for i in range(len(self._thresholds) - 1, -1, -1):
            if xp >= self._thresholds[i]:
                return i + 1
        return 1

    def progress(self, xp: float) -> LevelProgress:
        """
        Get detailed progress towards the next level.

        At the max level there is nothing left to earn, so the bar reads full.
        """
        level = self.level_for(xp)
        current = self.threshold_for(level)
        needed = self.threshold_for(level + 1) - current
        into_level = xp - current

        if needed <= 0:
            fraction = 1.0
        else:
            fraction = min(1.0, max(0.0, into_level / needed))

        return LevelProgress(level=level, into_level=into_level, needed=needed, fraction=fraction)


LEVEL_CURVE = LevelCurve(ARK_XP_TABLE)
