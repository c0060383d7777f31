"""Depth-to-color mapping for sources without an SDK colorizer."""

import cv2
import numpy as np


def colorize_depth(
    depth: np.ndarray,
    alpha: float = 0.03,
    colormap: int = cv2.COLORMAP_JET,
) -> np.ndarray:
    """Map a ``uint16`` depth image to an RGB ``uint8`` image.

    Args:
        depth: ``(H, W)`` depth in device units.
        alpha: Scale applied before clipping to 8 bits.
        colormap: OpenCV colormap id.

    Returns:
        ``(H, W, 3)`` RGB image. Zero depth (no data) maps to black.
    """
    if depth.ndim != 2:
        raise ValueError(f"depth must be 2-D, got shape {depth.shape}")
    scaled = cv2.convertScaleAbs(depth, alpha=alpha)
    colored = cv2.applyColorMap(scaled, colormap)
    colored[depth == 0] = 0
    return cv2.cvtColor(colored, cv2.COLOR_BGR2RGB)
