"""
Config adapters - Implementations of ConfigProviderPort.
"""

from .environment import EnvironmentConfigProvider


__all__ = ["EnvironmentConfigProvider"]
