# screenshot_mcp/capture/encoder.py
from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image

from screenshot_mcp.discovery.records import Bounds
from screenshot_mcp.utils.config import ImageFormat


EXTENSIONS = {ImageFormat.png: "png", ImageFormat.jpg: "jpg"}


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    width: int
    height: int
    format: ImageFormat

    @property
    def extension(self) -> str:
        return EXTENSIONS[self.format]


def encode_image(raw: bytes, fmt: ImageFormat | str = ImageFormat.png, quality: int = 100) -> EncodedImage:
    """
    Re-encode a captured image.
      - png: lossless, optimize=True (quality is ignored)
      - jpg: RGB JPEG at `quality`, progressive
    """
    fmt = ImageFormat(fmt)
    with Image.open(io.BytesIO(raw)) as im:
        im.load()
        if fmt == ImageFormat.jpg:
            data = _encode_jpeg(im, quality)
        else:
            data = _encode_png(im)
        return EncodedImage(data=data, width=im.width, height=im.height, format=fmt)


def crop_region(raw: bytes, region: Bounds) -> bytes:
    """
    Cut `region` out of a full-screen capture. The result is always exactly
    region.width x region.height; anything outside the screen stays black.
    """
    with Image.open(io.BytesIO(raw)) as im:
        im.load()
        box = (region.x, region.y, region.x + region.width, region.y + region.height)
        cropped = im.crop(box)
        out = io.BytesIO()
        cropped.save(out, format="PNG")
        return out.getvalue()


# ---------- Internals ----------

def _encode_png(im: Image.Image) -> bytes:
    out = io.BytesIO()
    try:
        im.save(out, format="PNG", optimize=True)
    except OSError:
        # Some images still fail optimize=True; fallback without it
        out = io.BytesIO()
        im.save(out, format="PNG")
    return out.getvalue()


def _encode_jpeg(im: Image.Image, quality: int) -> bytes:
    img = im
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(
        out,
        format="JPEG",
        quality=max(1, min(100, int(quality))),
        optimize=True,
        progressive=True,
    )
    return out.getvalue()
