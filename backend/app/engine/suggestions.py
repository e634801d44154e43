from collections.abc import Iterable, Iterator

from app.engine.artifacts import AISuggestion


class SuggestionSet:
    """Ordered critique notes for the current draft; order is the backend's relevance order."""

    def __init__(self, items: Iterable[AISuggestion] = ()):
        self._items: list[AISuggestion] = list(items)

    def replace(self, items: Iterable[AISuggestion]) -> None:
        self._items = list(items)

    def clear(self) -> None:
        self._items = []

    @property
    def items(self) -> list[AISuggestion]:
        return list(self._items)

    def __iter__(self) -> Iterator[AISuggestion]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
