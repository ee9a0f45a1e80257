from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional, Tuple

from . import ast_nodes as ast
from .errors import ResolverInternalError


class BindingRegistry(ABC):
    """
    The side of the runtime that wants to know, for each local reference,
    how many environments up its binding lives.
    """
    @abstractmethod
    def record_resolution(self, expr: ast.Expr, depth: int):
        raise NotImplementedError


class ResolutionTable(BindingRegistry):
    """
    Maps reference-site nodes to hop counts. Nodes hash by identity, so two
    `a` references in different places get separate entries. A node with no
    entry is a global and is looked up dynamically at run time.
    """
    def __init__(self):
        self._depths: Dict[ast.Expr, int] = {}

    def record_resolution(self, expr: ast.Expr, depth: int):
        if expr in self._depths:
            raise ResolverInternalError(f"Reference site {expr!r} was resolved twice.")
        self._depths[expr] = depth

    def depth_of(self, expr: ast.Expr) -> Optional[int]:
        return self._depths.get(expr)

    def items(self) -> Iterator[Tuple[ast.Expr, int]]:
        return iter(self._depths.items())

    def clear(self):
        self._depths.clear()

    def __contains__(self, expr: ast.Expr) -> bool:
        return expr in self._depths

    def __len__(self) -> int:
        return len(self._depths)
