"""Run configuration, built from the command line."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    """One extraction run: the selector and where to read and write.

    A None file means the corresponding standard stream.
    """

    css_selector: str
    input_file: str | None = None
    output_file: str | None = None
