"""Weighted random word selection without replacement."""

from __future__ import annotations

import logging
import random
from collections.abc import Collection, Sequence

from .models import VocabularyEntry

logger = logging.getLogger(__name__)

DIFFICULTY_STEP = 0.3
WRONG_HISTORY_BONUS = 3.0


class WeightedSelector:
    """Roulette-wheel sampler biased toward hard and previously missed words."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()

    @staticmethod
    def weight_for(entry: VocabularyEntry, wrong_history_ids: Collection[str] = ()) -> float:
        """Return the selection weight of one entry."""
        weight = 1.0 + (entry.difficulty - 1) * DIFFICULTY_STEP
        if entry.id in wrong_history_ids:
            weight += WRONG_HISTORY_BONUS
        return weight

    def select(
        self,
        pool: Sequence[VocabularyEntry],
        count: int,
        wrong_history_ids: Collection[str] = (),
    ) -> list[VocabularyEntry]:
        """Draw up to `count` distinct entries from pool, one weighted draw at a time."""
        history = set(wrong_history_ids)
        remaining = [(entry, self.weight_for(entry, history)) for entry in pool]
        target = min(count, len(remaining))
        selected: list[VocabularyEntry] = []

        while len(selected) < target:
            total_weight = sum(weight for _, weight in remaining)
            threshold = self.rng.random() * total_weight
            chosen = len(remaining) - 1
            cumulative = 0.0
            for index, (_, weight) in enumerate(remaining):
                cumulative += weight
                if threshold < cumulative:
                    chosen = index
                    break
            entry, _ = remaining.pop(chosen)
            selected.append(entry)

        logger.debug("selected %d of %d entries (%d in wrong history)", len(selected), len(pool), len(history))
        return selected
