"""Source-level expansion of product loops.

A loop written against the product call:

  for x, y, z in cartesian(xs, ys, zs):
      body(x, y, z)

is rewritten into real nested loops whose ``break`` leaves every level:

  for x in xs:
      for y in ys:
          for z in zs:
              body(x, y, z)
          else:
              continue
          break
      else:
          continue
      break

``continue`` in the body still advances the innermost level only, and an
``else:`` clause on the original loop moves to the outermost loop, so it runs
only when the traversal was not broken. Inner iterable expressions are
re-evaluated on every outer step, exactly like hand-written nested loops.
"""

from __future__ import annotations

import ast
import inspect
import textwrap
import types
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from cartesian_loops.core.errors import CartesianLoadError, CartesianUsageError
from cartesian_loops.core.expand.expand_config import DEFAULT_CONFIG
from cartesian_loops.core.model import ExpandConfig


F = TypeVar("F", bound=Callable[..., Any])

_FACTORY_NAME = "__cartesian_factory"


@dataclass
class ExpansionResult:
    tree: ast.Module
    expanded: int

    @property
    def source(self) -> str:
        return ast.unparse(self.tree)


class CartesianLoopExpander(ast.NodeTransformer):
    """Rewrite ``for TARGET in cartesian(E1, ..., EN)`` into nested loops.

    Usage errors are raised while visiting, with the file and line of the
    offending call, so a malformed loop never reaches execution.
    """

    def __init__(self, config: ExpandConfig = DEFAULT_CONFIG, *, filename: Optional[str] = None):
        super().__init__()
        self.config = config
        self.filename = filename
        self.expanded = 0
        self._tmp_id = 0

    def _fresh(self) -> str:
        self._tmp_id += 1
        return f"__cartesian_{self._tmp_id}"

    def _error(self, node: ast.AST, code: str, message: str) -> CartesianUsageError:
        return CartesianUsageError(
            code=code,
            message=message,
            file=self.filename,
            line=getattr(node, "lineno", None),
        )

    def _is_product_call(self, node: ast.AST) -> bool:
        if not isinstance(node, ast.Call):
            return False
        func = node.func
        if isinstance(func, ast.Name):
            return func.id in self.config.call_names
        if isinstance(func, ast.Attribute):
            return func.attr in self.config.call_names
        return False

    def visit_AsyncFor(self, node: ast.AsyncFor) -> Any:
        node = self.generic_visit(node)
        if self._is_product_call(node.iter):
            raise self._error(node, "E_ASYNC_FOR", "async for cannot iterate a product call")
        return node

    def visit_For(self, node: ast.For) -> Any:
        # Inner product loops first, so the body we nest is already expanded.
        node = self.generic_visit(node)
        call = node.iter
        if not self._is_product_call(call):
            return node
        assert isinstance(call, ast.Call)

        if call.keywords or any(isinstance(a, ast.Starred) for a in call.args):
            raise self._error(
                call,
                "E_UNSUPPORTED_ARGUMENT",
                "product loops take positional iterables only (no *args or keywords)",
            )

        exprs = list(call.args)
        if not exprs:
            raise self._error(call, "E_NO_ITERABLES", "product loop needs at least one iterable")

        if len(exprs) == 1:
            if not self.config.allow_single:
                raise self._error(
                    call,
                    "E_SINGLE_ITERABLE",
                    "product loop over a single iterable (allow_single is off)",
                )
            node.iter = exprs[0]
            self.expanded += 1
            return node

        targets, prelude = self._bind_targets(node, len(exprs))

        loop = self._at(ast.For(target=targets[-1], iter=exprs[-1], body=prelude + node.body, orelse=[]), node)
        for target, expr in zip(reversed(targets[:-1]), reversed(exprs[:-1])):
            loop.orelse = [self._at(ast.Continue(), node)]
            loop = self._at(
                ast.For(target=target, iter=expr, body=[loop, self._at(ast.Break(), node)], orelse=[]),
                node,
            )
        loop.orelse = node.orelse

        self.expanded += 1
        return loop

    def _bind_targets(self, node: ast.For, n: int) -> tuple[list[ast.expr], list[ast.stmt]]:
        """Return one store target per level, plus statements to run first in the body."""
        target = node.target
        if isinstance(target, (ast.Tuple, ast.List)):
            starred = sum(1 for e in target.elts if isinstance(e, ast.Starred))
            plain = len(target.elts) - starred
            if not starred:
                if plain != n:
                    raise self._error(
                        node,
                        "E_ARITY_MISMATCH",
                        f"loop binds {plain} names but the product has {n} iterables",
                    )
                return list(target.elts), []
            if plain > n:
                raise self._error(
                    node,
                    "E_ARITY_MISMATCH",
                    f"loop binds at least {plain} names but the product has {n} iterables",
                )

        # Anything else receives the whole tuple.
        names = [self._fresh() for _ in range(n)]
        assign = ast.Assign(
            targets=[target],
            value=ast.Tuple(elts=[ast.Name(id=x, ctx=ast.Load()) for x in names], ctx=ast.Load()),
        )
        stores: list[ast.expr] = [self._at(ast.Name(id=x, ctx=ast.Store()), target) for x in names]
        return stores, [self._at(assign, node)]

    @staticmethod
    def _at(new: Any, old: ast.AST) -> Any:
        return ast.copy_location(new, old)


def expand_tree(
    tree: ast.Module,
    *,
    filename: Optional[str] = None,
    config: Optional[ExpandConfig] = None,
) -> ExpansionResult:
    """Expand product loops in ``tree`` (modified in place)."""
    expander = CartesianLoopExpander(config or DEFAULT_CONFIG, filename=filename)
    new_tree = expander.visit(tree)
    ast.fix_missing_locations(new_tree)
    return ExpansionResult(tree=new_tree, expanded=expander.expanded)


def expand_source(
    source: str,
    *,
    filename: str = "<string>",
    config: Optional[ExpandConfig] = None,
) -> ExpansionResult:
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise CartesianLoadError(
            code="E_SYNTAX",
            message=e.msg,
            file=filename,
            line=e.lineno,
        ) from e
    return expand_tree(tree, filename=filename, config=config)


def expand_cartesian(fn: Optional[F] = None, *, config: Optional[ExpandConfig] = None) -> Any:
    """Decorator: rewrite the product loops of ``fn`` when it is defined.

      @expand_cartesian
      def find(grid):
          for x, y in cartesian(range(3), range(3)):
              if grid[x][y]:
                  break

    Malformed product loops fail here, at definition time. The function is
    rebuilt from its source and keeps its globals, closure cells, defaults and
    metadata. Decorators listed below this one are not re-applied, so use it
    as the decorator closest to ``def``.
    """
    if fn is None:
        return lambda f: expand_cartesian(f, config=config)
    return _expand_function(fn, config or DEFAULT_CONFIG)


def _expand_function(fn: F, config: ExpandConfig) -> F:
    code = fn.__code__
    filename = code.co_filename
    try:
        src = inspect.getsource(fn)
    except (OSError, TypeError) as e:
        raise CartesianUsageError(
            code="E_SOURCE_UNAVAILABLE",
            message=f"cannot get source for {fn.__qualname__}: {e}",
            file=filename,
        ) from e

    try:
        mod = ast.parse(textwrap.dedent(src), filename=filename)
    except SyntaxError as e:
        raise CartesianLoadError(code="E_SYNTAX", message=e.msg, file=filename, line=code.co_firstlineno) from e
    ast.increment_lineno(mod, code.co_firstlineno - 1)

    func_def = None
    for node in mod.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == fn.__name__:
            func_def = node
            break
    if func_def is None:
        raise CartesianUsageError(
            code="E_SOURCE_UNAVAILABLE",
            message=f"no function definition for {fn.__qualname__} in its source",
            file=filename,
            line=code.co_firstlineno,
        )
    func_def.decorator_list = []

    result = expand_tree(ast.Module(body=[func_def], type_ignores=[]), filename=filename, config=config)
    func_def = result.tree.body[0]

    # Compile inside a factory whose parameters are the original free
    # variables, and inside the owning class for methods, so that names
    # resolve to the same cells (including __class__ for super()).
    freevars = code.co_freevars
    factory = ast.parse(f"def {_FACTORY_NAME}({', '.join(freevars)}):\n    pass\n").body[0]
    assert isinstance(factory, ast.FunctionDef)
    owner = _owner_class(fn)
    if owner is not None:
        holder = ast.parse(f"class {owner}:\n    pass\n").body[0]
        assert isinstance(holder, ast.ClassDef)
        holder.body = [func_def]
        factory.body = [holder]
    else:
        factory.body = [func_def]

    module = ast.Module(body=[factory], type_ignores=[])
    ast.fix_missing_locations(module)
    new_code = _find_code(compile(module, filename, "exec"), fn.__name__)
    if new_code is None:
        raise CartesianUsageError(
            code="E_SOURCE_UNAVAILABLE",
            message=f"could not recompile {fn.__qualname__}",
            file=filename,
            line=code.co_firstlineno,
        )

    cells = dict(zip(freevars, fn.__closure__ or ()))
    missing = [name for name in new_code.co_freevars if name not in cells]
    if missing:
        raise CartesianUsageError(
            code="E_SOURCE_UNAVAILABLE",
            message=f"source of {fn.__qualname__} does not match the loaded function (free names: {', '.join(missing)})",
            file=filename,
            line=code.co_firstlineno,
        )
    closure = tuple(cells[name] for name in new_code.co_freevars) or None

    new_fn = types.FunctionType(new_code, fn.__globals__, fn.__name__, fn.__defaults__, closure)
    new_fn.__kwdefaults__ = fn.__kwdefaults__
    new_fn.__doc__ = fn.__doc__
    new_fn.__module__ = fn.__module__
    new_fn.__qualname__ = fn.__qualname__
    new_fn.__annotations__ = dict(getattr(fn, "__annotations__", {}) or {})
    new_fn.__dict__.update(fn.__dict__)
    if hasattr(fn, "__type_params__"):
        setattr(new_fn, "__type_params__", getattr(fn, "__type_params__"))
    return new_fn  # type: ignore[return-value]


def _owner_class(fn: Callable[..., Any]) -> Optional[str]:
    parts = fn.__qualname__.split(".")
    if len(parts) >= 2 and parts[-2] != "<locals>":
        return parts[-2]
    return None


def _find_code(root: types.CodeType, name: str) -> Optional[types.CodeType]:
    """Breadth-first search for the shallowest code object called ``name``."""
    queue: deque[types.CodeType] = deque([root])
    while queue:
        current = queue.popleft()
        for const in current.co_consts:
            if isinstance(const, types.CodeType):
                if const.co_name == name:
                    return const
                queue.append(const)
    return None
