"""
Tamper comparator — forensic original-vs-current comparison.

Equal digests mean the texts are byte-identical and nothing else is
reported. On a mismatch both texts are split into paragraphs (runs of
text separated by blank lines) and aligned with difflib. Each region
that differs becomes one ChangedSection carrying both texts.

Section names:
    - A paragraph that opens with "Section X", "Article X" or "Clause X"
      is named after that heading ("Section A").
    - Otherwise by position: "Paragraph 2", "Paragraphs 2-3".
    - Insertions and deletions get an "(added)" / "(removed)" suffix;
      added paragraphs are numbered by their position in the current text.
    - If every paragraph matches but the digests differ, the change is in
      spacing only and one "Whitespace changes" section is reported.

Nothing here is stored and the ledger is never consulted.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from typing import Any

from lexattest.clock import Clock, iso_utc, system_clock
from lexattest.fingerprint import digest

WHITESPACE_SECTION = "Whitespace changes"

_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t\r]*\n")
_HEADING_RE = re.compile(r"^(section|article|clause)\s+([A-Za-z0-9.]+)", re.IGNORECASE)


@dataclass(frozen=True)
class ChangedSection:
    """One region where the current text departs from the original."""

    name: str
    original: str
    current: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "original": self.original, "current": self.current}


@dataclass(frozen=True)
class AccessRecord:
    """Who last touched the document, and when."""

    date: str
    user: str

    def to_dict(self) -> dict[str, str]:
        return {"date": self.date, "user": self.user}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessRecord:
        return cls(date=data["date"], user=data["user"])


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing two versions of a document."""

    document_name: str
    original_hash: str
    current_hash: str
    match: bool
    checked_at: str
    sections: tuple[ChangedSection, ...] = ()
    diff: str = ""
    last_access: AccessRecord | None = None

    @property
    def tampered(self) -> bool:
        return not self.match

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "document_name": self.document_name,
            "original_hash": self.original_hash,
            "current_hash": self.current_hash,
            "match": self.match,
            "tampered": self.tampered,
            "checked_at": self.checked_at,
            "sections": [s.to_dict() for s in self.sections],
        }
        if self.diff:
            result["diff"] = self.diff
        if self.last_access is not None:
            result["last_access"] = self.last_access.to_dict()
        return result


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines, dropping empty paragraphs and edge whitespace."""
    paragraphs = (p.strip() for p in _PARAGRAPH_BREAK_RE.split(text))
    return [p for p in paragraphs if p]


def _heading(paragraph: str) -> str | None:
    m = _HEADING_RE.match(paragraph)
    if m is None:
        return None
    return f"{m.group(1).capitalize()} {m.group(2).rstrip('.')}"


def _positional_name(start: int, end: int) -> str:
    # start/end are 0-based, end exclusive
    if end - start <= 1:
        return f"Paragraph {start + 1}"
    return f"Paragraphs {start + 1}-{end}"


def _section_name(paragraphs: list[str], start: int, end: int, suffix: str = "") -> str:
    name = _heading(paragraphs[start]) or _positional_name(start, end)
    return f"{name} {suffix}" if suffix else name


def changed_sections(original: str, current: str) -> list[ChangedSection]:
    """Paragraph-level differences between two texts, in document order."""
    before = split_paragraphs(original)
    after = split_paragraphs(current)

    sections: list[ChangedSection] = []
    matcher = difflib.SequenceMatcher(None, before, after, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag == "replace":
            name = _section_name(before, i1, i2)
        elif tag == "delete":
            name = _section_name(before, i1, i2, "(removed)")
        else:
            name = _section_name(after, j1, j2, "(added)")
        sections.append(
            ChangedSection(
                name=name,
                original="\n\n".join(before[i1:i2]),
                current="\n\n".join(after[j1:j2]),
            )
        )
    return sections


def render_line_diff(original: str, current: str) -> str:
    """Positional line diff: ``- old`` / ``+ new`` for differing lines, two
    spaces of indent for unchanged ones."""
    before = original.split("\n")
    after = current.split("\n")
    out: list[str] = []
    for i in range(max(len(before), len(after))):
        old = before[i] if i < len(before) else ""
        new = after[i] if i < len(after) else ""
        if old != new:
            out.append(f"- {old}\n+ {new}\n")
        else:
            out.append(f"  {old}\n")
    return "".join(out)


def compare(
    document_name: str,
    original_content: str,
    current_content: str,
    last_access: AccessRecord | None = None,
    clock: Clock | None = None,
) -> ComparisonResult:
    """Compare two versions of a document by digest, explaining any mismatch."""
    original_hash = digest(original_content)
    current_hash = digest(current_content)
    checked_at = iso_utc((clock or system_clock)())

    if original_hash == current_hash:
        return ComparisonResult(
            document_name=document_name,
            original_hash=original_hash,
            current_hash=current_hash,
            match=True,
            checked_at=checked_at,
            last_access=last_access,
        )

    sections = changed_sections(original_content, current_content)
    if not sections:
        sections = [
            ChangedSection(
                name=WHITESPACE_SECTION,
                original=original_content,
                current=current_content,
            )
        ]

    return ComparisonResult(
        document_name=document_name,
        original_hash=original_hash,
        current_hash=current_hash,
        match=False,
        checked_at=checked_at,
        sections=tuple(sections),
        diff=render_line_diff(original_content, current_content),
        last_access=last_access,
    )
