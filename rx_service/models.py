"""
Pydantic request/response models for the prescription service API.

Request fields use the camelCase names the front end sends; vitals accept
both the short (hr/bp/temp) and long (heartRate/bloodPressure/temperatureF)
key sets.
"""
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _optional_id(v: Optional[Union[str, int]]) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


# --- Vitals ---

class BloodPressure(_ApiModel):
    systolic: list[float] = Field(default_factory=list, validation_alias=AliasChoices("systolic", "sys"))
    diastolic: list[float] = Field(default_factory=list, validation_alias=AliasChoices("diastolic", "dia"))


class VitalsSnapshot(_ApiModel):
    heart_rate: list[float] = Field(
        default_factory=list, validation_alias=AliasChoices("heart_rate", "heartRate", "hr")
    )
    blood_pressure: BloodPressure = Field(
        default_factory=BloodPressure, validation_alias=AliasChoices("blood_pressure", "bloodPressure", "bp")
    )
    spo2: list[float] = Field(default_factory=list)
    temperature_f: list[float] = Field(
        default_factory=list, validation_alias=AliasChoices("temperature_f", "temperatureF", "temp")
    )


# --- Prescription generation ---

class GeneratePrescriptionRequest(_ApiModel):
    transcript: str
    vitals: Optional[VitalsSnapshot] = None
    model: Optional[str] = None
    context: str = "General"
    target_language: Optional[str] = Field(None, alias="targetLanguage")
    include_diagnostic_tests: bool = Field(False, alias="includeDiagnosticTests")
    patient_id: Optional[Union[str, int]] = Field(None, alias="patientId")

    @field_validator("transcript")
    @classmethod
    def transcript_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Transcript is required")
        return v

    @field_validator("context")
    @classmethod
    def context_default(cls, v: str) -> str:
        return v.strip() or "General"

    @field_validator("target_language")
    @classmethod
    def language_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().lower() or None

    @field_validator("patient_id")
    @classmethod
    def patient_id_text(cls, v):
        return _optional_id(v)


class DiagnosticTestsPayload(_ApiModel):
    original: str
    translated: str
    language: str


class GeneratePrescriptionResponse(_ApiModel):
    prescription: str
    original_prescription: str = Field(serialization_alias="originalPrescription")
    translated: bool
    language: str
    diagnostic_tests: Optional[DiagnosticTestsPayload] = Field(None, serialization_alias="diagnosticTests")


# --- Free-text translation ---

class TranslateRequest(_ApiModel):
    text: str
    source_lang: str = Field("en", alias="sourceLang")
    target_lang: str = Field(alias="targetLang")

    @field_validator("text", "target_lang")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Missing required parameters")
        return v


class TranslateResponse(_ApiModel):
    translated_text: str = Field(serialization_alias="translatedText")


# --- Follow-up suggestions ---

class SuggestRequest(_ApiModel):
    transcript: str
    model: str
    context: str = "General Medicine"

    @field_validator("transcript", "model")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Transcript and model are required")
        return v


class SuggestResponse(_ApiModel):
    suggestions: str


# --- Vitals summary ---

class SummaryRequest(_ApiModel):
    latest_vitals: VitalsSnapshot = Field(alias="latestVitals")
    model: Optional[str] = None
    patient_id: Optional[Union[str, int]] = Field(None, alias="patientId")

    @field_validator("patient_id")
    @classmethod
    def patient_id_text(cls, v):
        return _optional_id(v)


class SummaryResponse(_ApiModel):
    summary: str
    patient_details: Optional[dict] = Field(None, serialization_alias="patientDetails")
    vitals_analyzed: dict = Field(serialization_alias="vitalsAnalyzed")


# --- Speech to text ---

class TranscribeRequest(_ApiModel):
    audio: str
    language: str = "en"
    audio_format: str = Field("webm", alias="audioFormat")
    sampling_rate: int = Field(16000, alias="samplingRate", gt=0)
    translate_to_english: bool = Field(True, alias="translateToEnglish")


class TranscribeResponse(_ApiModel):
    original_text: str = Field(serialization_alias="originalText")
    translated_text: Optional[str] = Field(None, serialization_alias="translatedText")
    source_language: str = Field(serialization_alias="sourceLanguage")
