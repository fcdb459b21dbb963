# render/__init__.py
from .assets import Assets, ImageLoadError, load_image, resolve_assets
from .compositor import Rendering, compose, render_product
from .export import ExportError, export_image, to_jpeg_bytes

__all__ = [
    "Assets",
    "ExportError",
    "ImageLoadError",
    "Rendering",
    "compose",
    "export_image",
    "load_image",
    "render_product",
    "resolve_assets",
    "to_jpeg_bytes",
]
