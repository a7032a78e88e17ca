# 분류 라벨 순서: 동점일 때 앞쪽 라벨이 이긴다. 순서 변경 = 분류 결과 변경.
LABEL_ORDER = ("red", "green", "blue", "yellow", "purple", "garbage")

COLORED_LABELS = LABEL_ORDER[:5]
GARBAGE = "garbage"
NONE_LABEL = "none"

LABEL_CODES = {
    "red": "R",
    "green": "G",
    "blue": "B",
    "yellow": "Y",
    "purple": "P",
    "garbage": "J",
    NONE_LABEL: "0",
}
