"""Identifier-like words inside comments and docstrings.

Everything found here is a documentation reference: it can flag an import
as "mentioned in docs" but never marks it used. Javadoc tags (``@see``,
``{@link ...}``) are skipped; their arguments are kept.

The same comments are also kept as text, re-indented, so the emitter can
render them above the declarations they document.
"""

from __future__ import annotations

import re

from codedistill.distill.models import ReferenceContext, ReferenceRole, ReferenceToken

_WORD = re.compile(r"(?<![\w$@.])[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*")


def documentation_tokens(
    text: str,
    start_line: int,
    start_column: int,
    start_byte: int,
) -> list[ReferenceToken]:
    """Tokenize comment text; positions are relative to where the comment starts."""
    tokens: list[ReferenceToken] = []
    for match in _WORD.finditer(text):
        dotted = match.group().rstrip(".")
        parts = dotted.split(".")
        prefix = text[: match.start()]
        newlines = prefix.count("\n")
        if newlines:
            column = match.start() - prefix.rfind("\n") - 1
        else:
            column = start_column + match.start()
        tokens.append(
            ReferenceToken(
                name=parts[-1],
                line=start_line + newlines,
                column=column,
                offset=start_byte + len(prefix.encode("utf-8")),
                context=ReferenceContext.DOCUMENTATION,
                role=ReferenceRole.TYPE if parts[-1][:1].isupper() else ReferenceRole.VALUE,
                qualifier=".".join(parts[:-1]) or None,
            )
        )
    return tokens


def javadoc_lines(text: str) -> list[str]:
    """A ``/** ... */`` comment with continuation lines aligned as `` * ...``."""
    lines = text.splitlines()
    out = [lines[0].strip()]
    for line in lines[1:]:
        stripped = line.strip()
        out.append(" " + stripped if stripped.startswith("*") else stripped)
    return out


def docstring_lines(text: str, column: int) -> list[str]:
    """A docstring literal with the indentation of its original position removed."""
    lines = text.splitlines()
    out = [lines[0].strip()]
    for line in lines[1:]:
        prefix = line[:column]
        out.append(line[column:] if not prefix or prefix.isspace() else line.lstrip())
    return [line.rstrip() for line in out]
