"""An RGBA raster canvas with PNG, BMP, TGA, HDR and JPEG encoders."""

__version__ = "0.1.0"
__all__ = ["bitmap", "color", "deflate", "hdr", "image", "jpeg", "png"]