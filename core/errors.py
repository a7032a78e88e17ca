"""
Exception hierarchy for the field reader.

OutOfBounds 는 프레임 단위 오류(다음 프레임에서 재시도),
나머지는 설정/프로그래밍 오류 혹은 시작 시점 오류다.
"""

from typing import Any, Dict, Optional


class PuyoVisionError(Exception):
    """Base exception for all field-reader errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ======================
# Image buffer
# ======================
class ImageBufferError(PuyoVisionError):
    pass


class OutOfBounds(ImageBufferError):
    """Raised when a rect is not fully contained in its parent."""


class InvalidChannelCount(ImageBufferError):
    """Raised when a buffer's channel count doesn't fit the conversion."""


class UnsupportedConversion(ImageBufferError):
    pass


class ColorSpaceMismatch(ImageBufferError):
    pass


# ======================
# Histogram
# ======================
class HistogramError(PuyoVisionError):
    pass


class EmptyRegion(HistogramError):
    """Raised when a region has zero area."""


class ChannelMismatch(HistogramError):
    """Raised when channel indices / bin vectors don't line up."""


class MaskMismatch(HistogramError):
    pass


# ======================
# Profiles / regions
# ======================
class MalformedProfile(PuyoVisionError):
    """Raised when persisted profile data can't be used for classification."""


class RegionReleased(PuyoVisionError):
    pass
