"""Restricted expression evaluator for code-predicate assertions.

Predicates are single Python expressions over the bound name ``output``,
for example ``len(output) > 10 and "error" not in output.lower()``.

The expression is parsed with :mod:`ast` and every node is checked against
an allow-list before anything runs. Names resolve only to ``output`` and a
fixed set of helpers, and only the attribute names in _ALLOWED_ATTRIBUTES
may be used. That shuts off paths such as ``().__class__.__subclasses__()``
and generator frame walks through ``gi_frame.f_back.f_globals``.
"""

from __future__ import annotations

import ast
import json
import re
from types import SimpleNamespace
from typing import Any

# Modules are exposed as namespaces of selected functions; a real module
# object would leak its own imports (re.enum.sys, ...).
_RE = SimpleNamespace(
    search=re.search,
    match=re.match,
    fullmatch=re.fullmatch,
    findall=re.findall,
    split=re.split,
    sub=re.sub,
    escape=re.escape,
    IGNORECASE=re.IGNORECASE,
    I=re.IGNORECASE,
    MULTILINE=re.MULTILINE,
    M=re.MULTILINE,
    DOTALL=re.DOTALL,
    S=re.DOTALL,
)
_JSON = SimpleNamespace(loads=json.loads, dumps=json.dumps)

SAFE_NAMES: dict[str, Any] = {
    "len": len,
    "any": any,
    "all": all,
    "min": min,
    "max": max,
    "sum": sum,
    "abs": abs,
    "round": round,
    "sorted": sorted,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "dict": dict,
    "set": set,
    "tuple": tuple,
    "re": _RE,
    "json": _JSON,
}

_ALLOWED_NODES: tuple[type[ast.AST], ...] = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.BinOp,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.FloorDiv,
    ast.Mod,
    ast.UnaryOp,
    ast.Not,
    ast.USub,
    ast.UAdd,
    ast.Compare,
    ast.Eq,
    ast.NotEq,
    ast.Lt,
    ast.LtE,
    ast.Gt,
    ast.GtE,
    ast.In,
    ast.NotIn,
    ast.Is,
    ast.IsNot,
    ast.IfExp,
    ast.Call,
    ast.keyword,
    ast.Attribute,
    ast.Subscript,
    ast.Slice,
    ast.Name,
    ast.Load,
    ast.Store,
    ast.Constant,
    ast.List,
    ast.Tuple,
    ast.Set,
    ast.Dict,
    ast.ListComp,
    ast.SetComp,
    ast.GeneratorExp,
    ast.comprehension,
)


# Attribute names a predicate may use: read-only methods of str, list, dict
# and re.Match, plus the members of the re/json namespaces above. Anything
# else (gi_frame, f_globals, mro, format, ...) is rejected before evaluation.
_ALLOWED_ATTRIBUTES = frozenset(
    {
        # str
        "capitalize", "casefold", "count", "endswith", "find", "index",
        "isalnum", "isalpha", "isascii", "isdecimal", "isdigit",
        "isidentifier", "islower", "isnumeric", "isprintable", "isspace",
        "istitle", "isupper", "join", "lower", "lstrip", "partition",
        "removeprefix", "removesuffix", "replace", "rfind", "rindex",
        "rpartition", "rsplit", "rstrip", "split", "splitlines",
        "startswith", "strip", "swapcase", "title", "upper",
        # list / dict
        "copy", "get", "items", "keys", "values",
        # re.Match
        "end", "group", "groupdict", "groups", "span", "start",
        # re / json namespaces
        *vars(_RE),
        *vars(_JSON),
    }
)

# Upper bound on the length of a sequence built with ``*``.
MAX_REPEAT_LENGTH = 1_000_000

# Injected into the evaluation namespace; predicates may not bind or name it.
_GUARD_NAME = "_guarded_binop"


class UnsafeExpressionError(ValueError):
    """Raised when a predicate uses a construct outside the allow-list."""


def _guarded_binop(op: str, left: Any, right: Any) -> Any:
    if op == "%":
        # printf-style formatting can pad to any width
        if isinstance(left, (str, bytes)):
            raise UnsafeExpressionError("String formatting with % is not allowed")
        return left % right
    for seq, count in ((left, right), (right, left)):
        if isinstance(seq, (str, bytes, list, tuple)) and isinstance(count, int):
            if len(seq) * count > MAX_REPEAT_LENGTH:
                raise ValueError(f"Repetition result exceeds {MAX_REPEAT_LENGTH} items")
    return left * right


class _GuardBinOps(ast.NodeTransformer):
    """Rewrite ``a * b`` and ``a % b`` into calls to ``_guarded_binop``."""

    _OPS = {ast.Mult: "*", ast.Mod: "%"}

    def visit_BinOp(self, node: ast.BinOp) -> ast.AST:
        self.generic_visit(node)
        op = self._OPS.get(type(node.op))
        if op is None:
            return node
        call = ast.Call(
            func=ast.Name(id=_GUARD_NAME, ctx=ast.Load()),
            args=[ast.Constant(op), node.left, node.right],
            keywords=[],
        )
        return ast.copy_location(call, node)


def _check_tree(tree: ast.AST) -> None:
    bound: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.comprehension):
            for target in ast.walk(node.target):
                if isinstance(target, ast.Name):
                    bound.add(target.id)

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise UnsafeExpressionError(
                f"{type(node).__name__} is not allowed in predicates"
            )
        if isinstance(node, ast.Attribute) and node.attr not in _ALLOWED_ATTRIBUTES:
            raise UnsafeExpressionError(f"Access to attribute '{node.attr}' is not allowed")
        if isinstance(node, ast.Name) and (
            node.id == _GUARD_NAME
            or not (node.id == "output" or node.id in SAFE_NAMES or node.id in bound)
        ):
            raise NameError(f"name '{node.id}' is not defined")


def compile_predicate(source: str) -> Any:
    """Parse and vet ``source``; returns a code object ready for evaluation.

    Raises SyntaxError, NameError or UnsafeExpressionError.
    """
    tree = ast.parse(source.strip(), mode="eval")
    _check_tree(tree)
    tree = ast.fix_missing_locations(_GuardBinOps().visit(tree))
    return compile(tree, "<predicate>", "eval")


def evaluate_predicate(source: str, output: str) -> Any:
    """Evaluate ``source`` with ``output`` bound and return the raw result.

    Sequence repetition is capped at MAX_REPEAT_LENGTH. There is no time
    limit, so a pathological ``re`` pattern can still backtrack for long.
    """
    code = compile_predicate(source)
    env = {
        "__builtins__": {},
        **SAFE_NAMES,
        _GUARD_NAME: _guarded_binop,
        "output": output,
    }
    return eval(code, env)
