"""Lint configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from defermod.errors import ConfigError

__all__ = ["LintConfig", "default_workers", "GO_EXTENSIONS"]

GO_EXTENSIONS: Tuple[str, ...] = (".go",)


def default_workers() -> int:
    """Available parallelism, at least 1."""
    return os.cpu_count() or 1


@dataclass
class LintConfig:
    """Tuning knobs for a lint run."""
    workers: int = field(default_factory=default_workers)
    extensions: Tuple[str, ...] = GO_EXTENSIONS
    verbosity: int = 0

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if self.workers < 1:
            problems.append(f"workers must be positive, got {self.workers}")
        if not self.extensions:
            problems.append("at least one source file extension is required")
        for ext in self.extensions:
            if not ext.startswith("."):
                problems.append(f"extension {ext!r} must start with '.'")
        if self.verbosity < 0:
            problems.append("verbosity must be non-negative")
        return problems

    def check(self) -> LintConfig:
        """Raise :class:`ConfigError` if the configuration is invalid."""
        problems = self.validate()
        if problems:
            raise ConfigError("invalid configuration: " + "; ".join(problems))
        return self

    def is_source_file(self, path: str) -> bool:
        return os.path.splitext(path)[1] in self.extensions
