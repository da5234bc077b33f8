import inspect

import pytest

from cartesian_loops import ExpandConfig, cartesian, expand_cartesian
from cartesian_loops.core.errors import CartesianUsageError


@expand_cartesian
def first_match(grid, wanted):
    """Return the first (row, col) holding wanted."""
    for r, c in cartesian(range(len(grid)), range(len(grid[0]))):
        if grid[r][c] == wanted:
            break
    else:
        return None
    return r, c


@expand_cartesian
def pairs(n, *, skip=None):
    for a, b in cartesian(range(n), range(n)):
        if b == skip:
            continue
        yield a, b


def test_decorated_function_keeps_metadata():
    assert first_match.__name__ == "first_match"
    assert first_match.__doc__ == "Return the first (row, col) holding wanted."
    assert first_match.__module__ == __name__
    assert pairs.__kwdefaults__ == {"skip": None}


def test_break_leaves_every_level():
    grid = [[1, 2, 3], [4, 5, 6]]
    assert first_match(grid, 5) == (1, 1)
    assert first_match(grid, 9) is None


def test_generator_function_stays_a_generator():
    assert inspect.isgeneratorfunction(pairs)
    assert list(pairs(2)) == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert list(pairs(3, skip=1)) == [(0, 0), (0, 2), (1, 0), (1, 2), (2, 0), (2, 2)]


def test_no_product_call_left_in_code():
    assert "cartesian" not in first_match.__code__.co_names


def test_closure_cells_are_shared():
    seen = []
    limit = 2

    @expand_cartesian
    def collect():
        for a, b in cartesian(range(3), range(3)):
            if a == limit:
                break
            seen.append((a, b))

    collect()
    assert seen == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]

    limit = 1
    seen.clear()
    collect()
    assert seen == [(0, 0), (0, 1), (0, 2)]


def test_nonlocal_writes_reach_enclosing_scope():
    total = 0

    @expand_cartesian
    def add_all():
        nonlocal total
        for a, b in cartesian([1, 2], [10, 20]):
            total += a * b

    add_all()
    assert total == 90


class Base:
    def cells(self):
        return ["base"]


class Board(Base):
    def __init__(self, w, h):
        self.__w = w
        self.h = h

    @expand_cartesian
    def cells(self):
        out = super().cells()
        for x, y in cartesian(range(self.__w), range(self.h)):
            out.append((x, y))
        return out


def test_methods_keep_super_and_private_names():
    assert Board(2, 1).cells() == ["base", (0, 0), (1, 0)]
    assert Board.cells.__qualname__ == "Board.cells"


def test_config_argument():
    @expand_cartesian(config=ExpandConfig(call_names=("grid",)))
    def walk():
        out = []
        for a, b in grid("ab", "cd"):
            out.append(a + b)
        return out

    assert walk() == ["ac", "ad", "bc", "bd"]


def test_usage_error_at_definition_time():
    start = inspect.currentframe().f_lineno
    with pytest.raises(CartesianUsageError) as exc:
        @expand_cartesian
        def bad():
            for a, b in cartesian(range(2), range(2), range(2)):
                pass
    assert exc.value.code == "E_ARITY_MISMATCH"
    assert exc.value.line == start + 4
    assert exc.value.file.endswith("test_expand_decorator.py")


def test_function_without_source():
    fn = eval("lambda: None")
    with pytest.raises(CartesianUsageError) as exc:
        expand_cartesian(fn)
    assert exc.value.code == "E_SOURCE_UNAVAILABLE"
