"""Tests for API request/response models."""
import pytest
from pydantic import ValidationError

from rx_service.models import (
    GeneratePrescriptionRequest,
    GeneratePrescriptionResponse,
    SummaryRequest,
    TranscribeRequest,
    TranslateRequest,
    VitalsSnapshot,
)


class TestVitalsSnapshot:
    def test_short_keys(self):
        vitals = VitalsSnapshot.model_validate({
            "hr": [70], "bp": {"sys": [120], "dia": [80]}, "spo2": [99], "temp": [98.4],
        })
        assert vitals.heart_rate == [70]
        assert vitals.blood_pressure.systolic == [120]
        assert vitals.blood_pressure.diastolic == [80]
        assert vitals.temperature_f == [98.4]

    def test_long_keys(self):
        vitals = VitalsSnapshot.model_validate({
            "heartRate": [70], "bloodPressure": {"systolic": [120], "diastolic": [80]}, "temperatureF": [99],
        })
        assert vitals.heart_rate == [70]
        assert vitals.blood_pressure.diastolic == [80]
        assert vitals.temperature_f == [99]

    def test_defaults_empty(self):
        vitals = VitalsSnapshot()
        assert vitals.heart_rate == []
        assert vitals.blood_pressure.systolic == []


class TestGeneratePrescriptionRequest:
    def test_defaults(self):
        request = GeneratePrescriptionRequest.model_validate({"transcript": "Fever"})
        assert request.context == "General"
        assert request.include_diagnostic_tests is False
        assert request.target_language is None
        assert request.patient_id is None

    def test_camel_case_fields(self):
        request = GeneratePrescriptionRequest.model_validate({
            "transcript": "Fever",
            "targetLanguage": " HI ",
            "includeDiagnosticTests": True,
            "patientId": 12,
        })
        assert request.target_language == "hi"
        assert request.include_diagnostic_tests is True
        assert request.patient_id == "12"

    @pytest.mark.parametrize("transcript", ["", "   \n"])
    def test_blank_transcript_rejected(self, transcript):
        with pytest.raises(ValidationError) as excinfo:
            GeneratePrescriptionRequest.model_validate({"transcript": transcript})
        assert "Transcript is required" in str(excinfo.value)

    def test_blank_context_defaults(self):
        assert GeneratePrescriptionRequest.model_validate({"transcript": "x", "context": " "}).context == "General"

    def test_blank_target_language_is_none(self):
        request = GeneratePrescriptionRequest.model_validate({"transcript": "x", "targetLanguage": ""})
        assert request.target_language is None


class TestResponses:
    def test_prescription_response_aliases(self):
        response = GeneratePrescriptionResponse(
            prescription="p", original_prescription="o", translated=False, language="en",
        )
        assert response.model_dump(by_alias=True) == {
            "prescription": "p",
            "originalPrescription": "o",
            "translated": False,
            "language": "en",
            "diagnosticTests": None,
        }


class TestOtherRequests:
    def test_translate_defaults_source(self):
        request = TranslateRequest.model_validate({"text": "hi", "targetLang": "ta"})
        assert request.source_lang == "en"

    def test_translate_requires_target(self):
        with pytest.raises(ValidationError):
            TranslateRequest.model_validate({"text": "hi", "targetLang": " "})

    def test_summary_requires_vitals(self):
        with pytest.raises(ValidationError):
            SummaryRequest.model_validate({"patientId": 3})

    def test_transcribe_defaults(self):
        request = TranscribeRequest.model_validate({"audio": "abc"})
        assert request.language == "en"
        assert request.audio_format == "webm"
        assert request.sampling_rate == 16000
        assert request.translate_to_english is True

    def test_transcribe_rejects_bad_sampling_rate(self):
        with pytest.raises(ValidationError):
            TranscribeRequest.model_validate({"audio": "abc", "samplingRate": 0})
