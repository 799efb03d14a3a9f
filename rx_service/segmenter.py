"""
Split generated markdown into size-bounded chunks for translation.

Headings start new units; oversized units are packed sentence by sentence.
Only whitespace at chunk edges is lost, never content.
"""
import re

HEADING_SPLIT = re.compile(r"(?=^#+\s)", re.MULTILINE)
SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")

DEFAULT_CHUNK_SIZE = 400


def split_sentences(text: str) -> list[str]:
    return [s for s in SENTENCE_SPLIT.split(text) if s]


def _pack_sentences(sentences: list[str], max_chunk_size: int) -> list[str]:
    chunks = []
    current = ""
    for sentence in sentences:
        candidate = f"{current} {sentence}" if current else sentence
        if len(candidate) <= max_chunk_size:
            current = candidate
            continue
        if current:
            chunks.append(current)
        # A sentence longer than the limit stays whole
        current = sentence
    if current:
        chunks.append(current)
    return chunks


def segment(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text at headings, then at sentence ends for oversized units.

    Args:
        text: Markdown text
        max_chunk_size: Target upper bound on chunk length (characters)

    Returns:
        Non-empty, trimmed chunks in document order
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks = []
    for unit in HEADING_SPLIT.split(text):
        unit = unit.strip()
        if not unit:
            continue
        if len(unit) <= max_chunk_size:
            chunks.append(unit)
            continue
        chunks.extend(c.strip() for c in _pack_sentences(split_sentences(unit), max_chunk_size))

    return [c for c in chunks if c]
