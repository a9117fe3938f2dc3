"""
Group-Buy Statistics Engine
Configuration Module
"""
from .settings import Settings, StatisticsSettings, get_settings

__all__ = ["Settings", "StatisticsSettings", "get_settings"]
