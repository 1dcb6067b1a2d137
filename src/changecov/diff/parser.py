"""Unified diff parsing."""

from __future__ import annotations

import re

from changecov.diff.models import DiffLines

_HUNK_RE = re.compile(r"^@@ -\d+(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def parse_diff(text: str) -> DiffLines:
    """Map unified diff text to added and deleted line numbers.

    Each hunk header re-anchors the current new-file line. Added lines are
    recorded and advance it, deleted lines are recorded at it without
    advancing, context lines only advance it. File headers, ``index`` lines
    and ``\\ No newline at end of file`` markers are skipped.

    ``+++``/``---`` prefixes are treated as file headers unless the current
    hunk still expects lines on that side, so ``++i`` style content survives.
    """
    additions: list[int] = []
    deletions: list[int] = []
    current_line: int | None = None
    old_left = 0
    new_left = 0

    for raw in text.splitlines():
        match = _HUNK_RE.match(raw)
        if match:
            old_left = int(match.group(1)) if match.group(1) is not None else 1
            current_line = int(match.group(2))
            new_left = int(match.group(3)) if match.group(3) is not None else 1
            continue

        if current_line is None or not raw:
            continue

        prefix = raw[0]
        if prefix == "+":
            if raw.startswith("+++") and new_left <= 0:
                continue
            additions.append(current_line)
            current_line += 1
            new_left -= 1
        elif prefix == "-":
            if raw.startswith("---") and old_left <= 0:
                continue
            deletions.append(current_line)
            old_left -= 1
        elif prefix == " ":
            current_line += 1
            old_left -= 1
            new_left -= 1

    return DiffLines(additions=additions, deletions=deletions)
