from __future__ import annotations

import re

from .utils import enumerate_lines, heading_key, normalize_line

_INLINE_HEADING_RE = re.compile(r"^([A-Za-z][A-Za-z '&/]{1,38}?)\s*:\s*(\S.*)$")


def split_sections(text: str, aliases: dict[str, str], *, default: str = "header") -> dict[str, list[str]]:
    """Group non-empty lines under the section heading they follow.

    Lines such as ``Skills: Python, SQL`` open the section and keep their content.
    """
    sections: dict[str, list[str]] = {default: []}
    current = default
    for _, raw_line in enumerate_lines(text):
        line = normalize_line(raw_line)
        if not line:
            continue

        key = heading_key(line, aliases)
        if key:
            current = key
            sections.setdefault(key, [])
            continue

        inline = _INLINE_HEADING_RE.match(line)
        if inline:
            inline_key = heading_key(inline.group(1), aliases)
            if inline_key:
                current = inline_key
                sections.setdefault(inline_key, []).append(inline.group(2).strip())
                continue

        sections.setdefault(current, []).append(line)
    return sections
