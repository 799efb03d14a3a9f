"""Tests for input sanitization."""
import base64

import pytest

from rx_service.input_sanitization import (
    MAX_TRANSCRIPT_LENGTH,
    sanitize_text,
    sanitize_transcript,
    validate_audio_data,
)

AUDIO = base64.b64encode(bytes(range(64))).decode()


class TestSanitizeText:
    def test_strips_and_removes_control_chars(self):
        assert sanitize_text("  fever\x00 and\x07 cough \n") == "fever and cough"

    def test_keeps_newlines_and_tabs(self):
        assert sanitize_text("line one\n\tline two") == "line one\n\tline two"

    def test_truncates(self):
        assert sanitize_text("abcdef", max_length=3) == "abc"

    def test_no_html_escaping(self):
        assert sanitize_text('BP < 120 & "stable"') == 'BP < 120 & "stable"'

    def test_empty(self):
        assert sanitize_text("") == ""

    def test_transcript_cap(self):
        assert len(sanitize_transcript("a" * (MAX_TRANSCRIPT_LENGTH + 10))) == MAX_TRANSCRIPT_LENGTH


class TestValidateAudio:
    def test_plain_base64(self):
        assert validate_audio_data(AUDIO) == AUDIO

    def test_data_url_prefix_removed(self):
        assert validate_audio_data(f"data:audio/webm;base64,{AUDIO}") == AUDIO

    @pytest.mark.parametrize("audio,message", [
        ("", "required"),
        (None, "required"),
        ("QUJD", "too short"),
        ("%" * 60, "Invalid"),
    ])
    def test_rejected(self, audio, message):
        with pytest.raises(ValueError) as excinfo:
            validate_audio_data(audio)
        assert message in str(excinfo.value)
