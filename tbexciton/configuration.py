"""Parsing of sectioned plain-text configuration files.

A configuration file is split in blocks. Every block starts with a line
holding a ``#`` followed by the name of the argument, and the lines that
follow (up to the next ``#`` line) are its raw content. Blank lines and
lines holding a ``!`` are treated as comments and ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")


def parse_argument(line: str) -> str:
    """Return the argument name after the first ``#``, without spaces and lowercased."""
    _, _, name = line.partition("#")
    return "".join(name.split()).lower()


def standardize_line(line: str) -> str:
    """Replace the ``,`` and ``;`` value delimiters with blanks."""
    return line.replace(",", " ").replace(";", " ")


def parse_fraction(content: str) -> float:
    """Evaluate a symbolic fraction ``a/b``; a missing or invalid denominator yields ``a``."""
    numerator_text, _, denominator_text = content.partition("/")
    numerator = float(numerator_text)
    try:
        return numerator / float(denominator_text)
    except (ValueError, ZeroDivisionError):
        return numerator


def parse_word(content: str) -> str:
    """Return the string with every whitespace removed and lowercased."""
    return "".join(content.split()).lower()


def parse_line(content: str, kind: Callable[[str], T] = float) -> list[T]:
    """Convert every blank-separated token of a standardized line with ``kind``."""
    return [kind(token) for token in standardize_line(content).split()]


def parse_scalar(content: str, kind: Callable[[str], T] = float) -> T:
    """Convert the first token of a line with ``kind``."""
    values = parse_line(content, kind)
    if not values:
        raise ValueError("Expected a value, got an empty line")
    return values[0]


class ConfigurationBase:
    """Base reader for configuration files made of ``#``-delimited blocks."""

    def __init__(self, filename: str | Path):
        if not str(filename):
            raise ValueError("Configuration file name must not be empty")
        path = Path(filename)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file does not exist: {filename}")
        self.filename = str(filename)
        self.lines: list[str] = path.read_text().splitlines()
        self.expected_arguments: list[str] = []
        self.found_arguments: list[str] = []
        self.contents: dict[str, list[str]] = {}

    def extract_arguments(self) -> list[str]:
        """Collect the argument names of the file.

        An argument line that is the very last line of the file has no
        content and is not counted.
        """
        self.found_arguments = [
            parse_argument(line) for line in self.lines[:-1] if "#" in line
        ]
        return self.found_arguments

    def extract_raw_content(self) -> dict[str, list[str]]:
        """Map every argument to the standardized lines of its block."""
        contents: dict[str, list[str]] = {}
        arg = ""
        content: list[str] = []
        for line in self.lines:
            if "#" in line:
                if content:
                    contents[arg] = content
                    content = []
                arg = parse_argument(line)
            elif not line or "!" in line:
                continue
            else:
                content.append(standardize_line(line))
        if self.lines:
            contents[arg] = content
        self.contents.update(contents)
        return self.contents

    def check_arguments(self) -> None:
        """Raise if any expected argument is missing from the file."""
        if not self.expected_arguments:
            raise RuntimeError("Expected arguments must be defined first")
        for arg in self.expected_arguments:
            if arg not in self.found_arguments:
                raise ValueError(f"Missing arguments in config. file: missing {arg}")

    def format_content(self) -> str:
        """Render the found arguments and their raw content as text."""
        blocks = []
        for arg in self.found_arguments:
            blocks.append(arg)
            blocks.extend(self.contents.get(arg, []))
        return "\n".join(blocks)