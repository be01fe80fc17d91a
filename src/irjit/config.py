"""Run configuration shared by the CLI and library callers."""

from __future__ import annotations

import argparse
from dataclasses import dataclass


@dataclass(frozen=True)
class RunConfig:
    entry: str = "main"
    library_path: str | None = None
    use_host_symbols: bool = True
    program_name: str | None = None
    opt_level: int = 2

    def __post_init__(self):
        if not self.entry:
            raise ValueError("entry name must not be empty")
        if self.opt_level not in (0, 1, 2, 3):
            raise ValueError(f"opt_level must be 0-3, got {self.opt_level}")

    @classmethod
    def from_namespace(cls, ns: argparse.Namespace, library_path: str | None) -> RunConfig:
        return cls(
            entry=ns.entry,
            library_path=library_path,
            use_host_symbols=not ns.no_host_symbols,
            program_name=ns.argv0,
            opt_level=ns.opt_level,
        )
