from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from config.roi import ROI, ROISet
from core.errors import RegionReleased
from core.image_buffer import ImageBuffer, crop
from core.roi_manager import Rect, relative_rect, subdivide_grid, subdivide_row

from app.frame_types import PlayerGeometry


@dataclass
class Region:
    """
    이름 붙은 Rect + 부모 버퍼의 view (처음 접근할 때 crop).
    view 는 부모 저장소를 공유하므로 부모가 region 보다 오래 살아야 한다.
    """

    name: str
    rect: Rect
    parent: Optional[ImageBuffer]
    _view: Optional[ImageBuffer] = field(default=None, repr=False)

    @property
    def view(self) -> ImageBuffer:
        if self.parent is None:
            raise RegionReleased(f"region '{self.name}' was released")
        if self._view is None:
            self._view = crop(self.parent, self.rect)
        return self._view

    def release(self) -> None:
        self._view = None
        self.parent = None


@dataclass
class PlayerFields:
    player: int
    field: Region
    cells: List[List[Region]]  # cells[x][y]
    score_area: Region
    score_digits: List[Region]

    def regions(self) -> List[Region]:
        out = [self.field, self.score_area]
        out.extend(cell for column in self.cells for cell in column)
        out.extend(self.score_digits)
        return out

    def geometry(self) -> PlayerGeometry:
        return PlayerGeometry(
            player=self.player,
            field=self.field.rect,
            cells=tuple(tuple(c.rect for c in column) for column in self.cells),
            score_area=self.score_area.rect,
            score_digits=tuple(d.rect for d in self.score_digits),
        )

    def release(self) -> None:
        """프레임 처리 끝: 모든 view 를 한 번에 해제."""
        for region in self.regions():
            region.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


def build_player_fields(
    screen: ImageBuffer,
    player: int,
    screen_rect: Optional[Rect] = None,
    roi: ROISet = ROI,
) -> PlayerFields:
    """
    screen: 전체 프레임 버퍼
    screen_rect: 프레임 안의 게임 화면 영역 (None 이면 프레임 전체)
    모든 Rect 는 프레임 절대 좌표. 범위 밖이면 OutOfBounds.
    """
    if screen_rect is None:
        screen_rect = screen.extent
    screen_rect.require_inside(screen.extent)

    layout = roi.player(player)
    grid = roi.GRID

    field_rect = relative_rect(screen_rect, layout.FIELD)
    score_rect = relative_rect(screen_rect, layout.SCORE_AREA)

    cells = [
        [Region(f"p{player}.cell[{x}][{y}]", rect, screen) for y, rect in enumerate(column)]
        for x, column in enumerate(subdivide_grid(field_rect, grid.FIELD_COLS, grid.FIELD_ROWS))
    ]
    digits = [
        Region(f"p{player}.digit[{i}]", rect, screen)
        for i, rect in enumerate(subdivide_row(score_rect, grid.SCORE_DIGITS))
    ]

    fields = PlayerFields(
        player=player,
        field=Region(f"p{player}.field", field_rect, screen),
        cells=cells,
        score_area=Region(f"p{player}.score", score_rect, screen),
        score_digits=digits,
    )
    # crop 범위 확인을 여기서 끝내서 분류 도중 실패하지 않게 한다
    for region in fields.regions():
        _ = region.view
    return fields
