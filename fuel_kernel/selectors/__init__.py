"""Selectors for the fuel kernel (read side)."""

from fuel_kernel.selectors.config_selector import ConfigurationSelector
from fuel_kernel.selectors.journey_selector import JourneyDataSource, JourneySelector
from fuel_kernel.selectors.lpo_selector import FIRST_LPO_NUMBER, LPOSelector

__all__ = [
    "ConfigurationSelector",
    "FIRST_LPO_NUMBER",
    "JourneyDataSource",
    "JourneySelector",
    "LPOSelector",
]
