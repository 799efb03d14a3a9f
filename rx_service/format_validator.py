"""Whitespace and heading clean-up for generated and translated documents."""
import re

HEADING_LINE = re.compile(r"^(#{1,6})[ \t]+(.*)$")
EXCESS_NEWLINES = re.compile(r"\n{3,}")


def is_heading(line: str) -> bool:
    return bool(HEADING_LINE.match(line))


def _standardize_heading(line: str) -> str:
    # Patient details are always a second-level section
    match = HEADING_LINE.match(line)
    if match and "patient" in match.group(2).lower():
        return f"## {match.group(2)}"
    return line


def normalize(text: str) -> str:
    """Normalize a markdown document.

    - headings about the patient use "## "
    - every heading is preceded by a blank line (except at the very top)
    - runs of three or more newlines collapse to one blank line
    - leading/trailing whitespace is removed

    normalize(normalize(x)) == normalize(x)
    """
    if not text:
        return ""

    lines = text.strip().split("\n")
    out: list[str] = []
    for line in lines:
        line = _standardize_heading(line)
        if is_heading(line) and out and out[-1].strip():
            out.append("")
        out.append(line)

    cleaned = EXCESS_NEWLINES.sub("\n\n", "\n".join(out))
    return cleaned.strip()
