"""Imaging package: image downloads and ASCII rasterization."""

from termweb.imaging.rasterizer import RAMP, decode_image, rasterize, rasterize_file
from termweb.imaging.storage import DownloadStore

__all__ = ["RAMP", "rasterize", "rasterize_file", "decode_image", "DownloadStore"]
