from dataclasses import dataclass
from typing import Dict, List, Tuple

from config.labels import COLORED_LABELS, GARBAGE


# 스킨(캘리브레이션) 이미지 안의 샘플 배치 (px)
# 색 뿌요: label_index 행, 한 행에 16개 / 방해 뿌요: 1개
@dataclass(frozen=True)
class SwatchLayout:
    swatch_width: int = 64
    swatch_height: int = 60
    pitch: int = 72
    samples_per_color: int = 16

    garbage_origin: Tuple[int, int] = (72 * 18, 72)
    garbage_samples: int = 1

    def swatch_origins(self) -> Dict[str, List[Tuple[int, int]]]:
        origins: Dict[str, List[Tuple[int, int]]] = {}
        for row, label in enumerate(COLORED_LABELS):
            origins[label] = [
                (self.pitch * i, self.pitch * row) for i in range(self.samples_per_color)
            ]

        gx, gy = self.garbage_origin
        origins[GARBAGE] = [(gx + self.pitch * i, gy) for i in range(self.garbage_samples)]
        return origins

    @property
    def min_image_size(self) -> Tuple[int, int]:
        """(w, h) the calibration image must at least have."""
        xs = [x for pts in self.swatch_origins().values() for x, _ in pts]
        ys = [y for pts in self.swatch_origins().values() for _, y in pts]
        return max(xs) + self.swatch_width, max(ys) + self.swatch_height


SWATCHES = SwatchLayout()
