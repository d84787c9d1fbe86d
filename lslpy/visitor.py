#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
lslpy/visitor.py
================

Visitor infrastructure for the typed LSL tree.

Nodes are plain frozen dataclasses with no ``accept`` method; ``ASTVisitor``
routes each node by its exact type through the closed tables in
:mod:`lslpy.ast`.  A node whose type is not in the table, or a table entry
the subclass does not implement, is a broken front-end contract and raises
:class:`~lslpy.errors.ContractViolation`.
"""

from __future__ import annotations

from typing import Any, Dict

from lslpy import ast as A
from lslpy.errors import ContractViolation

__all__ = [
    "ASTVisitor",
]


class ASTVisitor:
    """Base class for tree visitors.

    Subclasses implement ``visit_<kind>`` for every kind named in
    ``A.EXPRESSION_KINDS`` and ``A.STATEMENT_KINDS``.  Extra keyword
    arguments given to :meth:`visit_expression` are forwarded.
    """

    def visit_expression(self, node: A.Expression, **kwargs: Any) -> Any:
        """Dispatch an expression node."""
        return self._dispatch(node, A.EXPRESSION_KINDS, "expression", kwargs)

    def visit_statement(self, node: A.Statement) -> Any:
        """Dispatch a statement node."""
        return self._dispatch(node, A.STATEMENT_KINDS, "statement", {})

    def _dispatch(
        self,
        node: Any,
        table: Dict[type, str],
        category: str,
        kwargs: Dict[str, Any],
    ) -> Any:
        kind = table.get(type(node))
        if kind is None:
            raise ContractViolation(
                f"Unknown {category} node type: {type(node).__name__}", node=node
            )
        method = getattr(self, f"visit_{kind}", None)
        if method is None:
            return self.generic_visit(node)
        return method(node, **kwargs)

    def generic_visit(self, node: Any) -> Any:
        """Called when the subclass has no method for a known node kind."""
        raise ContractViolation(
            f"{type(self).__name__} cannot handle {type(node).__name__}", node=node
        )
