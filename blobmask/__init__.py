"""Animated blob mask with a brush eraser."""

from blobmask.config import OverlayConfig, load_config
from blobmask.core.overlay import Host, Overlay

__all__ = ["Host", "Overlay", "OverlayConfig", "load_config"]
__version__ = "0.1.0"
