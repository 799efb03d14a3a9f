"""
Section Translator - translates a generated markdown document while keeping
its structure.

Documents with at least two level-1/level-2 sections are translated section
by section (heading and body as separate calls). Anything else goes through
size-bounded chunks, after which lost headings are restored from a keyword
table. All backend calls of one document run through a single TaskSequencer,
so they are strictly ordered and spaced by the configured delay.

A unit whose translation fails keeps its original text; the document as a
whole never fails.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .outcome import Outcome
from .segmenter import segment
from .sequencer import TaskSequencer
from .translation_client import TranslationServiceClient

logger = logging.getLogger(__name__)

SECTION_SPLIT = re.compile(r"(?=^##?\s)", re.MULTILINE)
HEADING_LINE = re.compile(r"^(#+\s*)(.*)$")
ANY_HEADING = re.compile(r"^#+\s", re.MULTILINE)
LIST_ITEM = re.compile(r"^(?:[-*+]|\d+[.)])\s")

SECTION_SEPARATOR = "\n\n"
MAX_RESTORED_HEADING_LENGTH = 60

# Words that mark the start of a prescription section, per language
SECTION_KEYWORDS = {
    "en": ("Diagnosis", "Medication", "Advice", "Investigation", "Follow-up"),
    "hi": ("निदान", "दवा", "सलाह", "जांच", "फॉलो-अप"),
    "mr": ("निदान", "औषध", "सल्ला", "तपासणी", "पाठपुरावा"),
    "bn": ("রোগনির্ণয়", "ওষুধ", "পরামর্শ", "পরীক্ষা", "ফলো-আপ"),
}


@dataclass(frozen=True)
class DocumentSection:
    header_prefix: Optional[str]
    header_text: Optional[str]
    body: str

    @property
    def has_header(self) -> bool:
        return self.header_prefix is not None

    def render(self, header_text: Optional[str] = None, body: Optional[str] = None) -> str:
        """Reassemble the section, optionally with replacement heading/body text."""
        header_text = self.header_text if header_text is None else header_text
        body = self.body if body is None else body
        if not self.has_header:
            return body
        return f"{self.header_prefix}{header_text}" + (f"{SECTION_SEPARATOR}{body}" if body else "")


def parse_section(text: str) -> DocumentSection:
    text = text.strip()
    first_line, _, rest = text.partition("\n")
    match = HEADING_LINE.match(first_line)
    if not match or not ANY_HEADING.match(first_line):
        return DocumentSection(header_prefix=None, header_text=None, body=text)
    return DocumentSection(
        header_prefix=match.group(1),
        header_text=match.group(2).strip(),
        body=rest.strip(),
    )


def split_sections(document: str) -> list[DocumentSection]:
    """Split at "# " / "## " lines; blank pieces are dropped."""
    return [parse_section(piece) for piece in SECTION_SPLIT.split(document) if piece.strip()]


def restore_headings(original: str, translated: str, languages: tuple[str, ...]) -> str:
    """Promote keyword lines to "## " headings when translation dropped every heading.

    Only short, non-list lines that contain a section keyword of one of the
    given languages are promoted.
    """
    if not ANY_HEADING.search(original) or "#" in translated:
        return translated

    keywords = [kw.lower() for lang in languages for kw in SECTION_KEYWORDS.get(lang, ())]
    if not keywords:
        return translated

    lines = []
    for line in translated.split("\n"):
        stripped = line.strip()
        if (
            stripped
            and len(stripped) <= MAX_RESTORED_HEADING_LENGTH
            and not LIST_ITEM.match(stripped)
            and any(kw in stripped.lower() for kw in keywords)
        ):
            lines.append(f"## {stripped}")
        else:
            lines.append(line)
    return "\n".join(lines)


class SectionTranslator:
    """Structure-preserving document translation."""

    def __init__(
        self,
        client: TranslationServiceClient,
        source_language: str = "en",
        chunk_size: int = 350,
        sequencer_factory: Optional[Callable[[], TaskSequencer]] = None,
    ):
        self.client = client
        self.source_language = source_language
        self.chunk_size = chunk_size
        self.sequencer_factory = sequencer_factory or TaskSequencer

    def should_translate(self, target_language: Optional[str]) -> bool:
        return (
            bool(target_language)
            and target_language != self.source_language
            and self.client.is_supported_language(target_language)
        )

    async def _call(self, sequencer: TaskSequencer, text: str, target_language: str) -> str:
        return await sequencer.run(self.client.translate, text, self.source_language, target_language)

    async def _translate_section(
        self,
        section: DocumentSection,
        sequencer: TaskSequencer,
        target_language: str,
    ) -> str:
        if not section.has_header:
            return await self._call(sequencer, section.body, target_language)

        translated_header = await self._call(sequencer, section.header_text, target_language) if section.header_text else ""
        translated_body = await self._call(sequencer, section.body, target_language) if section.body else ""
        return section.render(header_text=translated_header, body=translated_body)

    async def _translate_sections(
        self,
        sections: list[DocumentSection],
        target_language: str,
    ) -> list[Outcome[str]]:
        sequencer = self.sequencer_factory()
        outcomes = []
        for i, section in enumerate(sections, 1):
            logger.info(f"Translating section {i}/{len(sections)}")
            try:
                outcomes.append(Outcome.success(
                    await self._translate_section(section, sequencer, target_language)
                ))
            except Exception as e:
                logger.error(f"Error translating section {i}: {e}")
                outcomes.append(Outcome.fallback(section.render(), f"section {i}: {e}"))
        return outcomes

    async def _translate_chunks(self, chunks: list[str], target_language: str) -> list[Outcome[str]]:
        sequencer = self.sequencer_factory()
        outcomes = []
        for i, chunk in enumerate(chunks, 1):
            logger.info(f"Translating chunk {i}/{len(chunks)}")
            try:
                outcomes.append(Outcome.success(await self._call(sequencer, chunk, target_language)))
            except Exception as e:
                logger.error(f"Error translating chunk {i}: {e}")
                outcomes.append(Outcome.fallback(chunk, f"chunk {i}: {e}"))
        return outcomes

    async def translate_document_outcome(self, document: str, target_language: Optional[str]) -> Outcome[str]:
        """Translate a document, reporting which units fell back to the original."""
        if not document or not document.strip() or not self.should_translate(target_language):
            return Outcome.success(document)

        try:
            logger.info(f"Translating document to {target_language}")
            sections = split_sections(document)

            if len(sections) < 2:
                chunks = segment(document, self.chunk_size)
                outcomes = await self._translate_chunks(chunks, target_language)
                translated = SECTION_SEPARATOR.join(o.value for o in outcomes)
                translated = restore_headings(
                    document, translated, (target_language, self.source_language)
                )
            else:
                outcomes = await self._translate_sections(sections, target_language)
                translated = SECTION_SEPARATOR.join(o.value for o in outcomes)
        except Exception as e:
            logger.warning(f"Document translation failed, returning original: {e}")
            return Outcome.fallback(document, f"translation aborted: {e}")

        failed = [o.reason for o in outcomes if o.degraded]
        if failed and len(failed) == len(outcomes):
            logger.warning("Every unit failed to translate, returning original document")
            return Outcome.fallback(document, "; ".join(failed))
        if failed:
            return Outcome.fallback(translated, "; ".join(failed))
        logger.info("Document translation completed with preserved formatting")
        return Outcome.success(translated)

    async def translate_document(self, document: str, target_language: Optional[str]) -> str:
        """Translate a document; never raises, returns the original on failure."""
        outcome = await self.translate_document_outcome(document, target_language)
        return outcome.value
