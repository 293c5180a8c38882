"""
Composition Module for Shotframe

Cropping and effect rendering for captured screenshots.
"""

from src.compose.engine import crop, crop_file, encode_image, load_image, render, render_file, save_image
from src.compose.models import BackgroundStyle, BackgroundType, CropRegion, RenderSettings, ShadowSettings

__all__ = [
    "BackgroundStyle",
    "BackgroundType",
    "CropRegion",
    "RenderSettings",
    "ShadowSettings",
    "crop",
    "crop_file",
    "encode_image",
    "load_image",
    "render",
    "render_file",
    "save_image",
]
