import re
from typing import NamedTuple, Optional, Sequence

_CURRENCY_CHARS = re.compile(r"[$€£¥₹,]")
_NUMBER_RUN = re.compile(r"\d+")


class SalaryRange(NamedTuple):
    min: int
    max: int


def string_similarity(a: str, b: str) -> int:
    """
    1 if either string contains the other (case-insensitive), else 0.

    Binary on purpose. Empty and single-character strings match almost
    anything.
    """
    s1 = (a or "").lower()
    s2 = (b or "").lower()
    return 1 if s1 in s2 or s2 in s1 else 0


def array_similarity(arr1: Sequence[str], arr2: Sequence[str]) -> float:
    """
    Pairwise containment matches over the longer list's length.

    Every (item1, item2) pair is counted, so the ratio is not capped and can
    exceed 1 when items match many-to-many.
    """
    if not arr1 or not arr2:
        return 0.0
    matches = 0
    for item1 in arr1:
        for item2 in arr2:
            if string_similarity(item1, item2) > 0:
                matches += 1
    return matches / max(len(arr1), len(arr2))


def extract_salary_range(text: Optional[str]) -> Optional[SalaryRange]:
    """
    Parse a salary range from free text like "$50,000 - $80,000".

    Only the first two numeric runs are used. A single number is both bounds;
    no numbers gives None.
    """
    if not text:
        return None
    cleaned = _CURRENCY_CHARS.sub("", text.lower())
    numbers = [int(n) for n in _NUMBER_RUN.findall(cleaned)]
    if not numbers:
        return None
    if len(numbers) >= 2:
        first, second = numbers[0], numbers[1]
        return SalaryRange(min(first, second), max(first, second))
    return SalaryRange(numbers[0], numbers[0])
