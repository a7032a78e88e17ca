"""Pixel buffers with an explicit color-space tag."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from core.errors import (
    ColorSpaceMismatch,
    InvalidChannelCount,
    OutOfBounds,
    UnsupportedConversion,
)
from core.roi_manager import Rect


class ColorSpace(str, Enum):
    RGB = "RGB"
    RGBA = "RGBA"
    BGR = "BGR"
    BGRA = "BGRA"
    HSV = "HSV"
    GRAY = "GRAY"


CHANNELS: Dict[ColorSpace, int] = {
    ColorSpace.RGB: 3,
    ColorSpace.RGBA: 4,
    ColorSpace.BGR: 3,
    ColorSpace.BGRA: 4,
    ColorSpace.HSV: 3,
    ColorSpace.GRAY: 1,
}

# (src, dst) -> cv2 code
_CONVERSIONS: Dict[Tuple[ColorSpace, ColorSpace], int] = {
    (ColorSpace.RGBA, ColorSpace.RGB): cv2.COLOR_RGBA2RGB,
    (ColorSpace.BGRA, ColorSpace.BGR): cv2.COLOR_BGRA2BGR,
    (ColorSpace.BGRA, ColorSpace.RGB): cv2.COLOR_BGRA2RGB,
    (ColorSpace.RGB, ColorSpace.BGR): cv2.COLOR_RGB2BGR,
    (ColorSpace.BGR, ColorSpace.RGB): cv2.COLOR_BGR2RGB,
    (ColorSpace.RGB, ColorSpace.HSV): cv2.COLOR_RGB2HSV,
    (ColorSpace.BGR, ColorSpace.HSV): cv2.COLOR_BGR2HSV,
    (ColorSpace.HSV, ColorSpace.RGB): cv2.COLOR_HSV2RGB,
    (ColorSpace.HSV, ColorSpace.BGR): cv2.COLOR_HSV2BGR,
    (ColorSpace.RGB, ColorSpace.GRAY): cv2.COLOR_RGB2GRAY,
    (ColorSpace.BGR, ColorSpace.GRAY): cv2.COLOR_BGR2GRAY,
}


@dataclass(frozen=True)
class ImageBuffer:
    """
    pixels: (H, W, C) 또는 (H, W) uint8 배열
    space: pixels 의 색공간 (암묵적으로 추정하지 않는다)
    """

    pixels: np.ndarray
    space: ColorSpace

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def extent(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    @classmethod
    def from_pil(cls, img: Image.Image) -> "ImageBuffer":
        if img.mode == "RGBA":
            return cls(np.array(img), ColorSpace.RGBA)
        if img.mode == "L":
            return cls(np.array(img), ColorSpace.GRAY)
        return cls(np.array(img.convert("RGB")), ColorSpace.RGB)

    def to_pil(self) -> Image.Image:
        if self.space in (ColorSpace.RGB, ColorSpace.GRAY):
            return Image.fromarray(self.pixels)
        src = _collapse_alpha(self)
        return Image.fromarray(convert_color_space(src, src.space, ColorSpace.RGB).pixels)


def open_frame(path: Union[str, Path]) -> ImageBuffer:
    """Load an image file as an ImageBuffer (RGB or RGBA, as stored)."""
    with Image.open(path) as img:
        img.load()
        return ImageBuffer.from_pil(img)


def convert_color_space(buffer: ImageBuffer, src: ColorSpace, dst: ColorSpace) -> ImageBuffer:
    """
    색공간 변환 (원본은 건드리지 않음).
    4채널 버퍼는 hue 기반 변환 전에 3채널로 먼저 줄여야 한다.
    """
    src = ColorSpace(src)
    dst = ColorSpace(dst)

    if buffer.space != src:
        raise ColorSpaceMismatch(f"buffer is tagged {buffer.space.value}, not {src.value}")

    if buffer.channels != CHANNELS[src]:
        raise InvalidChannelCount(
            f"{src.value} expects {CHANNELS[src]} channels, buffer has {buffer.channels}"
        )

    if src == dst:
        return ImageBuffer(buffer.pixels.copy(), dst)

    if CHANNELS[src] == 4 and dst == ColorSpace.HSV:
        raise InvalidChannelCount(
            f"{src.value} -> HSV needs a 3-channel source; collapse alpha first"
        )

    code = _CONVERSIONS.get((src, dst))
    if code is None:
        raise UnsupportedConversion(f"no conversion {src.value} -> {dst.value}")

    return ImageBuffer(cv2.cvtColor(buffer.pixels, code), dst)


def to_hsv(buffer: ImageBuffer) -> ImageBuffer:
    """RGBA/BGRA -> RGB/BGR -> HSV, 두 단계를 명시적으로 수행."""
    if buffer.space == ColorSpace.HSV:
        return buffer
    collapsed = _collapse_alpha(buffer)
    return convert_color_space(collapsed, collapsed.space, ColorSpace.HSV)


def crop(buffer: ImageBuffer, rect: Rect) -> ImageBuffer:
    """
    rect 영역의 view 를 반환한다 (복사 없음, 원본과 저장소 공유).
    범위 검사는 소수 좌표 그대로, 그 다음 정수 픽셀 격자로 truncate.
    """
    if not buffer.extent.contains(rect):
        raise OutOfBounds(
            f"crop {rect.as_tuple()} exceeds buffer {buffer.width}x{buffer.height}",
            details={"rect": rect.as_tuple(), "size": (buffer.width, buffer.height)},
        )
    x, y, w, h = rect.to_pixels()
    return ImageBuffer(buffer.pixels[y : y + h, x : x + w], buffer.space)


def _collapse_alpha(buffer: ImageBuffer) -> ImageBuffer:
    if buffer.space == ColorSpace.RGBA:
        return convert_color_space(buffer, ColorSpace.RGBA, ColorSpace.RGB)
    if buffer.space == ColorSpace.BGRA:
        return convert_color_space(buffer, ColorSpace.BGRA, ColorSpace.BGR)
    return buffer
