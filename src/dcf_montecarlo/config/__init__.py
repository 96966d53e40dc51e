"""
Configuration: frozen settings and numeric tolerances.
"""

from dcf_montecarlo.config.settings import SETTINGS, Settings
from dcf_montecarlo.config.tolerances import DISCARD_EPSILON, get_tolerance

__all__ = ["SETTINGS", "Settings", "DISCARD_EPSILON", "get_tolerance"]
