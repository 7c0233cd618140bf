"""Periodic multi-asset portfolio rebalancer for EVM chains."""

__version__ = "0.1.0"
