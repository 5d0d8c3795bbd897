"""
CampfireBot - Colors Module
===========================

Color definitions for Discord embeds.
"""


# =============================================================================
# Base Color Values (Hex)
# =============================================================================

COLOR_EMBER = 0xE67E22      # Campfire orange (primary brand color)
COLOR_LEVEL = 0x00FF00      # Level profile embeds

# Status colors
COLOR_SUCCESS = 0x43B581    # Green - successful actions
COLOR_ERROR = 0xF04747      # Red - errors and failures


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "COLOR_EMBER",
    "COLOR_LEVEL",
    "COLOR_SUCCESS",
    "COLOR_ERROR",
]
