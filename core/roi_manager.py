from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from core.errors import OutOfBounds

# 부동소수 누적 오차 허용치 (셀 경계 합이 부모 경계를 아주 살짝 넘는 경우)
_EPS = 1e-6


@dataclass(frozen=True)
class Rect:
    """
    x, y: 좌상단 좌표 (px, 소수 허용)
    width, height: ROI 크기
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if min(self.x, self.y, self.width, self.height) < 0:
            raise ValueError(f"Rect must be non-negative: {self}")

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, other: "Rect") -> bool:
        return (
            other.x >= self.x - _EPS
            and other.y >= self.y - _EPS
            and other.right <= self.right + _EPS
            and other.bottom <= self.bottom + _EPS
        )

    def require_inside(self, parent: "Rect") -> "Rect":
        if not parent.contains(self):
            raise OutOfBounds(
                f"{self} is not inside {parent}",
                details={"rect": self.as_tuple(), "parent": parent.as_tuple()},
            )
        return self

    def to_pixels(self) -> Tuple[int, int, int, int]:
        """정수 픽셀 격자로 잘라낸 (x, y, w, h). 반올림이 아니라 truncate."""
        return int(self.x), int(self.y), int(self.width), int(self.height)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height


def subdivide_grid(parent: Rect, cols: int, rows: int) -> List[List[Rect]]:
    """
    parent 를 cols x rows 격자로 균등 분할한다.
    반환: cells[x][y] (열 우선). 중간 계산에서 반올림하지 않는다.
    """
    if cols <= 0 or rows <= 0:
        raise ValueError(f"cols/rows must be positive: {cols}x{rows}")

    cell_w = parent.width / cols
    cell_h = parent.height / rows

    cells: List[List[Rect]] = []
    for x in range(cols):
        column = []
        for y in range(rows):
            rect = Rect(parent.x + x * cell_w, parent.y + y * cell_h, cell_w, cell_h)
            column.append(rect.require_inside(parent))
        cells.append(column)
    return cells


def subdivide_row(parent: Rect, count: int) -> List[Rect]:
    """Split parent horizontally into `count` equal slots (score digits)."""
    return [column[0] for column in subdivide_grid(parent, count, 1)]


def relative_rect(screen: Rect, roi: Tuple[float, float, float, float]) -> Rect:
    """
    screen: 게임 화면 영역 (절대 좌표)
    roi: 화면 기준 상대적인 위치 (x, y, w, h)
    """
    o_w, o_h = screen.width, screen.height
    r_x, r_y, r_w, r_h = roi
    target = Rect(screen.x + o_w * r_x, screen.y + o_h * r_y, o_w * r_w, o_h * r_h)
    return target.require_inside(screen)
