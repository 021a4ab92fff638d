"""Uniform random selection and the wheel target-angle mapping.

The wheel is divided into ``n`` equal segments of ``360 / n`` degrees,
indexed clockwise from the pointer at the top.  :func:`target_angle` returns
the rotation that brings the midpoint of a segment under the pointer; any
rotation of ``k * 360 + target_angle`` degrees lands on the same segment.
The presentation layer must lay segments out with the same orientation.
"""
import math
import random
from typing import Callable, Dict, Optional, Sequence, Tuple

RandomSource = Callable[[], float]

FULL_TURN = 360.0


class EmptySelectionError(ValueError):
    """Raised when a caller asks to pick an item from an empty collection."""


def select_index(n: int, random_source: RandomSource = random.random) -> Optional[int]:
    """Return an index in ``[0, n)`` from a single draw of *random_source*.

    ``floor(r * n)`` is uniform when *r* is uniform on ``[0, 1)``; no
    rejection sampling is done.  Returns ``None`` when *n* is 0.

    Raises:
        ValueError: if *n* is negative.
    """
    if n < 0:
        raise ValueError(f"cannot select from {n} items")
    if n == 0:
        return None
    index = int(math.floor(random_source() * n))
    # r * n can round up to n for r just below 1
    return min(max(index, 0), n - 1)


def target_angle(index: int, n: int) -> float:
    """Return the rotation in ``[0, 360)`` aligning segment *index* with the pointer."""
    if n <= 0 or not 0 <= index < n:
        raise ValueError(f"index {index} out of range for {n} segments")
    segment = FULL_TURN / n
    angle = (FULL_TURN - (index + 0.5) * segment) % FULL_TURN
    # -0.0 % 360 and tiny negative remainders can surface as 360.0
    return 0.0 if angle >= FULL_TURN else angle


def select(n: int, random_source: RandomSource = random.random) -> Optional[Dict]:
    """Pick an index and its target angle.

    Returns:
        ``{'index': int, 'target_angle': float}``, or ``None`` when *n* is 0.
    """
    index = select_index(n, random_source)
    if index is None:
        return None
    return {'index': index, 'target_angle': target_angle(index, n)}


def segment_at(rotation: float, n: int) -> int:
    """Return the index of the segment under the pointer after turning the wheel by *rotation*."""
    if n <= 0:
        raise ValueError(f"wheel has no segments ({n})")
    under_pointer = (FULL_TURN - rotation % FULL_TURN) % FULL_TURN
    return min(int(under_pointer // (FULL_TURN / n)), n - 1)


def rotation_for(current_rotation: float, angle: float, full_turns: int = 5) -> float:
    """Return the next absolute wheel rotation that lands on *angle*.

    The wheel only ever turns forward: the result is *current_rotation* plus
    the forward distance to *angle* (a full turn if already there) plus
    *full_turns* extra revolutions.
    """
    current = current_rotation % FULL_TURN
    distance = (angle % FULL_TURN) - current
    if distance <= 0:
        distance += FULL_TURN
    return current_rotation + distance + full_turns * FULL_TURN


def simulate_distribution(n: int, iterations: int = 10000,
                          random_source: RandomSource = random.random) -> Dict[int, int]:
    """Count how often each index is drawn over *iterations* selections."""
    counts = {i: 0 for i in range(n)}
    for _ in range(iterations):
        index = select_index(n, random_source)
        if index is not None:
            counts[index] += 1
    return counts


class RandomSelector:
    """Selector bound to one random source.

    Production code uses the module-level ``random.random``; tests inject a
    deterministic callable or a seeded :class:`random.Random`.
    """

    def __init__(self, random_source: Optional[RandomSource] = None,
                 seed: Optional[int] = None) -> None:
        if random_source is None:
            random_source = random.Random(seed).random if seed is not None else random.random
        self._random = random_source

    def select(self, n: int) -> Optional[Dict]:
        return select(n, self._random)

    def select_item(self, items: Sequence[str]) -> Tuple[str, int, float]:
        """Pick one of *items*.

        Returns:
            ``(item, index, target_angle)``

        Raises:
            EmptySelectionError: if *items* is empty.  Callers are expected to
                check for an empty pool first, so this is a programming error.
        """
        if not items:
            raise EmptySelectionError('Cannot select from an empty collection')
        result = self.select(len(items))
        return items[result['index']], result['index'], result['target_angle']

    def distribution(self, n: int, iterations: int = 10000) -> Dict[int, int]:
        return simulate_distribution(n, iterations, self._random)
