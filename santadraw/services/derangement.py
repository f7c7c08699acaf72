from __future__ import annotations

import random
from collections.abc import Hashable, Sequence
from typing import TypeVar

from ..errors import DerangementUnreachable, InsufficientParticipants, ValidationError


DEFAULT_MAX_ATTEMPTS = 10_000

K = TypeVar("K", bound=Hashable)

_system_random = random.SystemRandom()


def _has_fixed_point(ids: Sequence[K], shuffled: Sequence[K]) -> bool:
    return any(a == b for a, b in zip(ids, shuffled))


def generate_derangement(
    ids: Sequence[K],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    rng: random.Random | None = None,
) -> dict[K, K]:
    """
    Map every id to another id of the same sequence, nobody to themselves.

    Rejection sampling: shuffle (Fisher-Yates) until no position keeps its own
    id. About 1/e of all permutations qualify, so a couple of attempts are
    enough for any human-sized group.

    Raises InsufficientParticipants for fewer than 2 ids, ValidationError for
    duplicates and DerangementUnreachable when max_attempts are exhausted.
    """
    ids = list(ids)
    if len(ids) < 2:
        raise InsufficientParticipants()
    if len(set(ids)) != len(ids):
        raise ValidationError("Participant identifiers must be unique.")

    rng = rng or _system_random
    shuffled = ids[:]

    for _ in range(max_attempts):
        rng.shuffle(shuffled)
        if not _has_fixed_point(ids, shuffled):
            return dict(zip(ids, shuffled))

    raise DerangementUnreachable()
