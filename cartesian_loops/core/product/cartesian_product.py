from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Callable, Union

from cartesian_loops.core.errors import CartesianUsageError


LevelSource = Union[Iterable[Any], Callable[[], Iterable[Any]]]


def cartesian(*iterables: LevelSource) -> Iterator[Any]:
    """Return one flat iterator over the Cartesian product of ``iterables``.

    Behaves like nested ``for`` loops with the leftmost iterable outermost:

        for x, y, z in cartesian(range(10), range(10), range(10)):
            grid[x][y][z] = x * y + z

    Tuples come out in lexicographic order, the last position cycling fastest.
    Leaving the loop with ``break`` ends every level at once; ``continue``
    advances the innermost level only.

    Each level is one of:

    - a re-iterable (list, range, str, dict, ...): ``iter()`` is called on it
      every time the level is entered;
    - a zero-argument factory returning an iterable: called every time the
      level is entered;
    - a one-shot iterator (generator, file, ``iter(...)``): only allowed as the
      first level, which is entered exactly once.

    A single iterable is passed through unchanged (its elements, not 1-tuples).

    Usage errors are raised here, before the first step. Errors raised by the
    iterables or factories surface unchanged while iterating.
    """

    if not iterables:
        raise CartesianUsageError(
            code="E_NO_ITERABLES",
            message="cartesian() needs at least one iterable",
        )

    for index, source in enumerate(iterables):
        if index > 0 and isinstance(source, Iterator):
            raise CartesianUsageError(
                code="E_ONE_SHOT_INNER_LEVEL",
                message=(
                    f"level {index + 1} is a one-shot iterator ({type(source).__name__}); "
                    "inner levels restart on every outer step, pass a re-iterable or a factory"
                ),
                path=f"iterables[{index}]",
            )

    if len(iterables) == 1:
        return _single(iterables[0])
    return _product(list(iterables))


def _open(source: LevelSource) -> Iterator[Any]:
    if not isinstance(source, Iterable) and callable(source):
        return iter(source())
    return iter(source)  # type: ignore[arg-type]


def _single(source: LevelSource) -> Iterator[Any]:
    yield from _open(source)


def _product(levels: list[LevelSource]) -> Iterator[tuple[Any, ...]]:
    # Outermost level is opened once per call; the recursive call re-opens
    # every inner level for each outer value.
    head, tail = levels[0], levels[1:]
    if not tail:
        for value in _open(head):
            yield (value,)
        return

    for value in _open(head):
        for rest in _product(tail):
            yield (value, *rest)
