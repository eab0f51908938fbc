"""Footnote collection: deduplicated bodies numbered by first appearance"""


class FootnoteCollector:

    def __init__(self) -> None:
        self._numbers: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._numbers)

    def __bool__(self) -> bool:
        return bool(self._numbers)

    def add(self, body: str) -> int:
        """Register body and return its 1-based number; identical text reuses the first number."""
        number = self._numbers.get(body)
        if number is None:
            number = len(self._numbers) + 1
            self._numbers[body] = number
        return number

    def items(self) -> list[tuple[int, str]]:
        """(number, body) pairs in first-seen order."""
        return [(n, body) for body, n in self._numbers.items()]

    def bodies(self) -> list[str]:
        return list(self._numbers)
