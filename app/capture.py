from __future__ import annotations
from pathlib import Path
from typing import Iterator, List, Tuple

from core.image_buffer import ImageBuffer, open_frame

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp"}


def list_images(folder: Path) -> List[Path]:
    paths = [p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTS]
    return sorted(paths, key=lambda p: p.name)


def iter_frames(paths: List[Path]) -> Iterator[Tuple[Path, ImageBuffer]]:
    """파일을 하나씩 열어서 (경로, 프레임) 반환. 미리 다 읽어두지 않는다."""
    for p in paths:
        yield p, open_frame(p)
