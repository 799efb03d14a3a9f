"""
Input sanitization for the prescription service.

Transcripts are passed to the model verbatim apart from trimming, control
character removal and a length cap; no HTML escaping is applied since the
text never reaches a browser unrendered.
"""
import base64
import binascii
import re
from typing import Optional

MAX_TRANSCRIPT_LENGTH = 20000
MAX_TRANSLATION_TEXT_LENGTH = 20000
MIN_AUDIO_LENGTH = 50

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)


def sanitize_text(text: str, max_length: Optional[int] = None) -> str:
    """Trim, drop control characters and truncate to max_length."""
    if not text:
        return ""

    text = CONTROL_CHARS.sub("", text.strip())

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_transcript(text: str) -> str:
    return sanitize_text(text, max_length=MAX_TRANSCRIPT_LENGTH)


def sanitize_translation_text(text: str) -> str:
    return sanitize_text(text, max_length=MAX_TRANSLATION_TEXT_LENGTH)


def validate_audio_data(audio: str) -> str:
    """Check that audio is usable base64 and return it without a data-URL prefix.

    Raises:
        ValueError: if the audio is missing, too short or not base64
    """
    if not isinstance(audio, str) or not audio.strip():
        raise ValueError("Audio data is required")

    audio = DATA_URL_PREFIX.sub("", audio.strip())
    if len(audio) < MIN_AUDIO_LENGTH:
        raise ValueError("Audio data is too short")

    try:
        base64.b64decode(audio, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Invalid audio data format") from e

    return audio
