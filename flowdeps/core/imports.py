# flowdeps/core/imports.py
"""
Import extraction and rewriting for Cadence source text.

Cadence knows four import forms:

    import Foo from "./Foo.cdc"     # string location
    import "Foo"                    # string location, contract name implied
    import Foo, Bar from 0x01       # address import
    import Crypto                   # identifier import (built-in)

Only the first two name a *location* that can be resolved against other
programs or an alias table; address and identifier imports refer to code that
is already deployed and are skipped.
"""
import posixpath
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import structlog

from flowdeps.exceptions import ImportParseError

log = structlog.get_logger(__name__)

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"

# Cadence line terminators; str.splitlines also breaks on form feeds and friends.
LINE_BREAK_RE = re.compile(r"(\r\n|\r|\n)")

IMPORT_START_RE = re.compile(r"^\s*import(?=[\s\"])")
IMPORT_RE = re.compile(
    r"^(?P<indent>\s*)(?P<stmt>import\s*"
    rf"(?:(?P<names>{_IDENT}(?:\s*,\s*{_IDENT})*)\s+from\s+)?"
    r"(?:\"(?P<location>[^\"]+)\"|(?P<address>0x[0-9a-fA-F]+)"
    rf"|(?P<identifier>{_IDENT})))\s*;?\s*$"
)
CONTRACT_DECL_RE = re.compile(
    r"^\s*(?:(?:access\(\w+\)|pub|priv)\s+)?contract\s+(?:interface\s+)?"
    rf"(?P<name>{_IDENT})",
    re.MULTILINE,
)


@dataclass
class ImportStatement:
    """One parsed import statement."""
    line: int  # 1-based line number
    names: List[str] = field(default_factory=list)
    location: Optional[str] = None
    address: Optional[str] = None
    identifier: Optional[str] = None

    @property
    def is_location(self) -> bool:
        return self.location is not None


def strip_comments(code: str) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping line and column positions."""
    out = []
    i, n = 0, len(code)
    depth = 0
    in_string = False
    while i < n:
        ch = code[i]
        nxt = code[i + 1] if i + 1 < n else ""
        if depth:
            if ch == "/" and nxt == "*":
                depth += 1
                out.append("  ")
                i += 2
            elif ch == "*" and nxt == "/":
                depth -= 1
                out.append("  ")
                i += 2
            else:
                out.append(ch if ch in "\r\n" else " ")
                i += 1
            continue
        if in_string:
            out.append(ch)
            if ch == "\\" and nxt:
                out.append(nxt)
                i += 2
                continue
            if ch == '"' or ch in "\r\n":
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif ch == "/" and nxt == "/":
            while i < n and code[i] not in "\r\n":
                out.append(" ")
                i += 1
        elif ch == "/" and nxt == "*":
            depth = 1
            out.append("  ")
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def split_lines(text: str, keepends: bool = False) -> List[str]:
    # like str.splitlines, but only \r\n, \r and \n end a line.
    parts = LINE_BREAK_RE.split(text)
    lines = [
        parts[i] + (parts[i + 1] if keepends and i + 1 < len(parts) else "")
        for i in range(0, len(parts), 2)
    ]
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def parse_import_statements(code: str) -> List[ImportStatement]:
    # parses every import statement in the code, in source order.
    statements: List[ImportStatement] = []
    for line_number, line in enumerate(split_lines(strip_comments(code)), start=1):
        if not IMPORT_START_RE.match(line):
            continue
        match = IMPORT_RE.match(line)
        if not match:
            raise ImportParseError(line_number, line)
        names = [n.strip() for n in match.group("names").split(",")] if match.group("names") else []
        statements.append(ImportStatement(
            line=line_number,
            names=names,
            location=match.group("location"),
            address=match.group("address"),
            identifier=match.group("identifier"),
        ))
    return statements


def extract_imports(code: str) -> List[str]:
    """Return the import locations referenced by the code, in extraction order.

    Address and identifier imports are not locations and are left out.
    Raises ImportParseError for a malformed import statement.
    """
    locations = [s.location for s in parse_import_statements(code) if s.is_location]
    log.debug("extracted_cadence_imports", count=len(locations))
    return locations


def declared_name(code: str) -> Optional[str]:
    # name of the first contract (or contract interface) declared in the code.
    match = CONTRACT_DECL_RE.search(strip_comments(code))
    return match.group("name") if match else None


def implied_contract_name(location: str) -> str:
    # "./contracts/Foo.cdc" -> "Foo", "Foo" -> "Foo"
    base = posixpath.basename(location)
    return base[:-4] if base.endswith(".cdc") else base


def replace_imports(code: str, addresses: Mapping[str, str]) -> str:
    """Rewrite string imports found in ``addresses`` into address imports.

    ``addresses`` maps an import location to the account address that holds
    the imported contract. Locations not in the mapping are left untouched.
    """
    original_lines = split_lines(code, keepends=True)
    stripped_lines = split_lines(strip_comments(code))
    for idx, stripped in enumerate(stripped_lines):
        if not IMPORT_START_RE.match(stripped):
            continue
        match = IMPORT_RE.match(stripped)
        if not match or match.group("location") is None:
            continue
        location = match.group("location")
        if location not in addresses:
            continue
        names = match.group("names") or implied_contract_name(location)
        start, end = match.span("stmt")
        line = original_lines[idx]
        original_lines[idx] = f"{line[:start]}import {names} from {addresses[location]}{line[end:]}"
    return "".join(original_lines)
