"""
Prescription pipeline - prompt, generate, normalize, optionally add
diagnostic-test recommendations, optionally translate.

Only the primary prescription call is fatal. Diagnostics, patient lookup and
translation degrade to "omit" or "keep the original" and are recorded in
PipelineResult.degradations.
"""
from dataclasses import dataclass, field
from typing import Optional

from .format_validator import normalize
from .formatters import format_patient_details, format_vitals_context
from .model_invoker import LLMInvocationFailed, ModelInvoker
from .models import DiagnosticTestsPayload, GeneratePrescriptionResponse, VitalsSnapshot
from .outcome import Outcome
from .patient_store import PatientStore
from .prompts import build_diagnostic_prompt, build_prescription_prompt
from .section_translator import SectionTranslator
from .structured_logging import StructuredLogger

logger = StructuredLogger(__name__)


class PrescriptionGenerationFailed(RuntimeError):
    """The primary prescription could not be generated."""


@dataclass(frozen=True)
class GenerationRequest:
    transcript: str
    vitals: Optional[VitalsSnapshot] = None
    clinical_context: str = "General"
    model_id: Optional[str] = None
    target_language: Optional[str] = None
    include_diagnostics: bool = False
    patient_id: Optional[str] = None


@dataclass(frozen=True)
class DiagnosticTests:
    original: str
    translated: str
    language: str


@dataclass
class PipelineResult:
    prescription: str
    original_prescription: str
    translated: bool
    language: str
    diagnostic_tests: Optional[DiagnosticTests] = None
    degradations: list[str] = field(default_factory=list)

    def to_response(self) -> GeneratePrescriptionResponse:
        diagnostics = None
        if self.diagnostic_tests is not None:
            diagnostics = DiagnosticTestsPayload(
                original=self.diagnostic_tests.original,
                translated=self.diagnostic_tests.translated,
                language=self.diagnostic_tests.language,
            )
        return GeneratePrescriptionResponse(
            prescription=self.prescription,
            original_prescription=self.original_prescription,
            translated=self.translated,
            language=self.language,
            diagnostic_tests=diagnostics,
        )


class PrescriptionPipeline:
    def __init__(
        self,
        invoker: ModelInvoker,
        translator: SectionTranslator,
        patient_store: Optional[PatientStore] = None,
        source_language: str = "en",
    ):
        self.invoker = invoker
        self.translator = translator
        self.patient_store = patient_store
        self.source_language = source_language

    async def _patient_context(self, patient_id: Optional[str]) -> Outcome[str]:
        if not patient_id or self.patient_store is None:
            return Outcome.success("")
        try:
            patient = await self.patient_store.get_patient(patient_id)
        except Exception as e:
            return Outcome.fallback("", f"patient lookup failed: {e}")
        details = format_patient_details(patient)
        return Outcome.success(f"\n\n{details}" if details else "")

    async def _diagnostics(self, request: GenerationRequest, notes: str) -> Outcome[Optional[str]]:
        try:
            response = await self.invoker.invoke(
                build_diagnostic_prompt(request.clinical_context, notes),
                request.model_id,
            )
        except LLMInvocationFailed as e:
            return Outcome.fallback(None, f"diagnostic tests: {e}")
        return Outcome.success(normalize(response.text))

    async def _translate(self, document: str, target_language: str, label: str) -> Outcome[str]:
        outcome = await self.translator.translate_document_outcome(document, target_language)
        text = normalize(outcome.value)
        if outcome.degraded:
            return Outcome.fallback(text, f"{label} translation: {outcome.reason}")
        return Outcome.success(text)

    async def generate(self, request: GenerationRequest) -> PipelineResult:
        """Run the pipeline for one request.

        Raises:
            PrescriptionGenerationFailed: when the prescription itself cannot be generated
        """
        degradations: list[str] = []

        def record(outcome: Outcome, stage: str):
            if outcome.degraded:
                degradations.append(outcome.reason)
                logger.warning("Pipeline step degraded", stage=stage, reason=outcome.reason)
            return outcome.value

        patient_block = record(await self._patient_context(request.patient_id), "patient_context")
        notes = request.transcript + format_vitals_context(request.vitals) + patient_block

        logger.info(
            "Generating prescription",
            context=request.clinical_context,
            model=request.model_id,
            target_language=request.target_language,
            include_diagnostics=request.include_diagnostics,
        )
        try:
            response = await self.invoker.invoke(
                build_prescription_prompt(request.clinical_context, notes),
                request.model_id,
            )
        except LLMInvocationFailed as e:
            logger.error("Prescription generation failed", error=str(e))
            raise PrescriptionGenerationFailed(str(e)) from e

        original_prescription = normalize(response.text)
        logger.info("Prescription generated and formatted", chars=len(original_prescription))

        diagnostics = None
        if request.include_diagnostics:
            diagnostics = record(await self._diagnostics(request, notes), "diagnostic_tests")

        target = request.target_language
        wants_translation = bool(target) and target != self.source_language
        language = target if wants_translation else self.source_language

        prescription = original_prescription
        translated_diagnostics = diagnostics
        if wants_translation:
            prescription = record(
                await self._translate(original_prescription, target, "prescription"), "translation"
            )
            if diagnostics:
                translated_diagnostics = record(
                    await self._translate(diagnostics, target, "diagnostic tests"), "translation"
                )

        return PipelineResult(
            prescription=prescription,
            original_prescription=original_prescription,
            translated=wants_translation,
            language=language,
            diagnostic_tests=DiagnosticTests(
                original=diagnostics,
                translated=translated_diagnostics,
                language=language,
            ) if diagnostics else None,
            degradations=degradations,
        )
