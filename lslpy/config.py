"""lslpy/config.py – Tuning knobs for the code generator.

The defaults name the symbols exported by the ``lummao`` runtime library
that generated scripts import.  Override them only when targeting a
runtime that exports the same helpers under other names.
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass
from typing import List

__all__ = ["GeneratorConfig"]


@dataclass(frozen=True)
class GeneratorConfig:
    """Names and layout used by :class:`lslpy.codegen.PythonGenerator`."""

    indent: str = "    "
    runtime_module: str = "lummao"
    class_name: str = "Script"
    base_class: str = "BaseLSLScript"
    builtins_namespace: str = "lslfuncs"
    goto_decorator: str = "with_goto"
    event_prefix: str = "e"

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if not self.indent or self.indent.strip(" \t"):
            problems.append("indent must be a non-empty run of spaces or tabs")
        for name in (
            "class_name",
            "base_class",
            "builtins_namespace",
            "goto_decorator",
        ):
            value = getattr(self, name)
            if not value.isidentifier() or keyword.iskeyword(value):
                problems.append(f"{name} must be a Python identifier, got {value!r}")
        if not all(
            part.isidentifier() and not keyword.iskeyword(part)
            for part in self.runtime_module.split(".")
        ):
            problems.append(
                f"runtime_module must be a dotted module path, got {self.runtime_module!r}"
            )
        if not self.event_prefix.isidentifier():
            problems.append(
                f"event_prefix must start a Python identifier, got {self.event_prefix!r}"
            )
        return problems
