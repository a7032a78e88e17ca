from dataclasses import dataclass, field
from typing import Dict, Tuple

# x, y, w, h
# 게임 화면(screen rect) 기준 상대적 왼쪽 위 모서리의 x, 왼쪽 위 모서리의 y, 너비 w, 높이 h
RelativeROI = Tuple[float, float, float, float]


@dataclass(frozen=True)
class PlayerLayout:
    FIELD: RelativeROI
    SCORE_AREA: RelativeROI


@dataclass(frozen=True)
class GridSpec:
    FIELD_COLS: int = 6
    FIELD_ROWS: int = 12
    SCORE_DIGITS: int = 8


@dataclass(frozen=True)
class ROISet:
    # 2P 는 1P 를 화면 중앙 기준 좌우 대칭
    PLAYERS: Dict[int, PlayerLayout] = field(
        default_factory=lambda: {
            1: PlayerLayout(
                FIELD=(0.146, 0.148, 0.2, 0.665),
                SCORE_AREA=(0.183, 0.817, 0.169, 0.056),
            ),
            2: PlayerLayout(
                FIELD=(0.654, 0.148, 0.2, 0.665),
                SCORE_AREA=(0.648, 0.817, 0.169, 0.056),
            ),
        }
    )
    GRID: GridSpec = GridSpec()

    def player(self, player: int) -> PlayerLayout:
        try:
            return self.PLAYERS[player]
        except KeyError:
            raise ValueError(f"no layout for player {player}; known: {sorted(self.PLAYERS)}") from None


ROI = ROISet()
