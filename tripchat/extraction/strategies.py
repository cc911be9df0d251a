"""
Fallback chains for the extractors

Each extractor owns an ordered list of strategies. The first strategy that
produces a non-empty result wins; the rest are never consulted.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Pattern, Sequence

logger = logging.getLogger(__name__)


class ExtractionStrategy(ABC):
    """One way of recovering a value from text"""

    name: str = "strategy"

    @abstractmethod
    def try_extract(self, text: str) -> Optional[Any]:
        """
        Return the extracted value, or None when this strategy does not apply.

        Empty containers count as "did not apply".
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class RegexCaptureStrategy(ExtractionStrategy):
    """First regex match whose cleaned capture passes `accept`"""

    def __init__(
        self,
        name: str,
        pattern: Pattern,
        cleaner: Optional[Callable[[str], Optional[str]]] = None,
        accept: Optional[Callable[[str], bool]] = None,
        group: int = 1
    ):
        self.name = name
        self.pattern = pattern
        self.cleaner = cleaner
        self.accept = accept
        self.group = group

    def try_extract(self, text: str) -> Optional[str]:
        for match in self.pattern.finditer(text):
            value = match.group(self.group)
            if self.cleaner:
                value = self.cleaner(value)
            if value and (self.accept is None or self.accept(value)):
                return value
        return None


def run_strategies(strategies: Sequence[ExtractionStrategy], text: str) -> Optional[Any]:
    """Try strategies in order and stop at the first hit"""

    if not text:
        return None

    for strategy in strategies:
        result = strategy.try_extract(text)
        if result:
            logger.debug(f"Strategy hit: {strategy.name}")
            return result

    return None


def run_over_texts(strategies: Sequence[ExtractionStrategy], texts: Iterable[str]) -> Optional[Any]:
    """Each strategy is tried against every text before moving to the next strategy"""

    texts = [t for t in texts if t]
    for strategy in strategies:
        for text in texts:
            result = strategy.try_extract(text)
            if result:
                logger.debug(f"Strategy hit: {strategy.name}")
                return result
    return None

