"""Configuration module for the portfolio rebalancer."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
