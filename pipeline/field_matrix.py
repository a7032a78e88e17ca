from __future__ import annotations

from typing import List, Sequence

from config.labels import LABEL_CODES
from pipeline.classifier import ClassificationResult


def to_code_matrix(
    results: Sequence[Sequence[ClassificationResult]], hidden_rows: int = 1
) -> List[str]:
    """
    분류 결과 grid[x][y] -> 열 단위 문자열 리스트 (위에서 아래로).
    맨 위 hidden_rows 칸은 화면에 안 보이는 행이라 "0" 으로 채운다.
    """
    if hidden_rows < 0:
        raise ValueError("hidden_rows must be >= 0")
    return [
        "0" * hidden_rows + "".join(LABEL_CODES[r.label] for r in column)
        for column in results
    ]


def format_field(results: Sequence[Sequence[ClassificationResult]], hidden_rows: int = 0) -> str:
    """Row-major text view of the field, one line per row."""
    columns = to_code_matrix(results, hidden_rows)
    if not columns:
        return ""
    n_rows = len(columns[0])
    return "\n".join("".join(col[y] for col in columns) for y in range(n_rows))
