# src/powermode/system/__init__.py
"""System module for reading and changing machine settings."""

from powermode.system.protocols import ControlSurface, MockControlSurface

__all__ = [
    "ControlSurface",
    "MockControlSurface",
]
