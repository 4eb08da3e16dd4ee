"""Terminal presentation for relay runs (Rich)."""

from ctrelay.monitor.renderer import RelayRenderer

__all__ = ["RelayRenderer"]
