"""
Clinic Rx Service - FastAPI Backend
Prescription generation from consultation transcripts, with structure-preserving
translation into Indian languages.

Architecture:
  - Hosted LLM (Nova / Claude / Mistral families) = prescription, diagnostics,
    suggestions and vitals summaries
  - Translation backend (ULCA pipeline + inference callback) = translation and ASR
  - SQLite patient table (read-only) = optional prompt enrichment
"""
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import Settings, get_settings
from .formatters import count_readings, format_patient_details, format_vitals
from .input_sanitization import (
    sanitize_text,
    sanitize_transcript,
    sanitize_translation_text,
    validate_audio_data,
)
from .model_invoker import MODEL_CATALOG, LLMInvocationFailed, ModelInvoker
from .models import (
    GeneratePrescriptionRequest,
    SuggestRequest,
    SuggestResponse,
    SummaryRequest,
    SummaryResponse,
    TranscribeRequest,
    TranscribeResponse,
    TranslateRequest,
    TranslateResponse,
)
from .patient_store import PatientStore
from .pipeline import GenerationRequest, PrescriptionGenerationFailed, PrescriptionPipeline
from .prompts import build_suggestion_prompt, build_vitals_summary_prompt
from .rate_limiter import check_rate_limit
from .section_translator import SectionTranslator
from .sequencer import TaskSequencer
from .structured_logging import StructuredLogger, log_request, set_request_id, setup_logging
from .translation_client import TranslationError, TranslationServiceClient

logger = StructuredLogger(__name__)


@dataclass
class Services:
    """Collaborators shared by all requests."""
    settings: Settings
    invoker: ModelInvoker
    translation_client: TranslationServiceClient
    translator: SectionTranslator
    patient_store: Optional[PatientStore]
    pipeline: PrescriptionPipeline


def build_services(settings: Settings) -> Services:
    invoker = ModelInvoker(settings)
    translation_client = TranslationServiceClient(settings)
    translator = SectionTranslator(
        translation_client,
        source_language=settings.source_language,
        chunk_size=settings.translation_chunk_size,
        sequencer_factory=lambda: TaskSequencer(settings.translation_delay_seconds),
    )
    patient_store = PatientStore(settings.db_path)
    pipeline = PrescriptionPipeline(
        invoker,
        translator,
        patient_store=patient_store,
        source_language=settings.source_language,
    )
    return Services(
        settings=settings,
        invoker=invoker,
        translation_client=translation_client,
        translator=translator,
        patient_store=patient_store,
        pipeline=pipeline,
    )


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    if first.get("type") == "missing":
        field_name = str(first["loc"][-1]) if first.get("loc") else "field"
        return f"{field_name[:1].upper()}{field_name[1:]} is required"
    message = str(first.get("msg", "Invalid request"))
    return message.removeprefix("Value error, ")


def _bad_request(message: str, headers: dict) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400, headers=headers)


def _services(request: Request) -> Services:
    return request.app.state.services


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the FastAPI app. Pre-built services skip construction in the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.services is None
        if owned:
            app_settings = settings or get_settings()
            setup_logging(app_settings.log_level, use_json=app_settings.log_json)
            app.state.services = build_services(app_settings)
        logger.info(
            "Clinic Rx service started",
            default_model=app.state.services.settings.default_model,
            source_language=app.state.services.settings.source_language,
        )
        yield
        if owned:
            await app.state.services.translation_client.aclose()
            app.state.services = None
        logger.info("Clinic Rx service stopped")

    app = FastAPI(
        title="Clinic Rx Service",
        description="Prescription generation and translation for clinical consultations",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    cors_origins = (services.settings if services else settings or get_settings()).cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start_time = time.time()
        request_id = set_request_id(request.headers.get("X-Request-ID"))

        response = await call_next(request)

        if request.url.path not in ["/health", "/docs", "/openapi.json"]:
            log_request(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=(time.time() - start_time) * 1000,
                client_ip=request.client.host if request.client else None,
            )

        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    async def health(req: Request):
        svc = _services(req)
        return {
            "status": "healthy",
            "default_model": svc.settings.default_model,
            "models": sorted(MODEL_CATALOG),
            "source_language": svc.settings.source_language,
            "pipeline_cache": svc.translation_client.pipelines.stats(),
        }

    @app.post("/generate-prescription")
    async def generate_prescription(request: dict, req: Request):
        start_time = time.time()
        rate_limit_headers = check_rate_limit("generate-prescription", req)

        try:
            request_model = GeneratePrescriptionRequest.model_validate(request)
        except ValidationError as e:
            return _bad_request(_validation_message(e), rate_limit_headers)

        transcript = sanitize_transcript(request_model.transcript)
        if not transcript:
            return _bad_request("Transcript is required", rate_limit_headers)

        generation_request = GenerationRequest(
            transcript=transcript,
            vitals=request_model.vitals,
            clinical_context=request_model.context,
            model_id=request_model.model,
            target_language=request_model.target_language,
            include_diagnostics=request_model.include_diagnostic_tests,
            patient_id=request_model.patient_id,
        )

        try:
            result = await _services(req).pipeline.generate(generation_request)
        except PrescriptionGenerationFailed as e:
            return JSONResponse(
                {"error": "Failed to generate prescription.", "details": str(e)},
                status_code=500,
                headers=rate_limit_headers,
            )

        logger.info(
            "generate-prescription completed",
            duration_ms=round((time.time() - start_time) * 1000, 2),
            translated=result.translated,
            degradations=len(result.degradations),
        )
        return JSONResponse(
            result.to_response().model_dump(by_alias=True, exclude_none=True),
            headers=rate_limit_headers,
        )

    @app.post("/translate")
    async def translate(request: dict, req: Request):
        rate_limit_headers = check_rate_limit("translate", req)

        try:
            request_model = TranslateRequest.model_validate(request)
        except ValidationError:
            return _bad_request("Missing required parameters", rate_limit_headers)

        text = sanitize_translation_text(request_model.text)
        source, target = request_model.source_lang, request_model.target_lang
        if source == target:
            return JSONResponse(
                TranslateResponse(translated_text=text).model_dump(by_alias=True),
                headers=rate_limit_headers,
            )

        try:
            translated = await _services(req).translation_client.translate(text, source, target)
        except TranslationError as e:
            logger.error("translate failed", error=str(e), source=source, target=target)
            return JSONResponse(
                {"error": "Translation failed", "details": str(e)},
                status_code=500,
                headers=rate_limit_headers,
            )

        return JSONResponse(
            TranslateResponse(translated_text=translated).model_dump(by_alias=True),
            headers=rate_limit_headers,
        )

    @app.post("/llm-suggest")
    async def llm_suggest(request: dict, req: Request):
        rate_limit_headers = check_rate_limit("llm-suggest", req)

        try:
            request_model = SuggestRequest.model_validate(request)
        except ValidationError:
            return _bad_request("Transcript and model are required", rate_limit_headers)

        prompt = build_suggestion_prompt(
            sanitize_text(request_model.context),
            sanitize_transcript(request_model.transcript),
        )
        try:
            response = await _services(req).invoker.invoke(
                prompt, request_model.model, include_metadata=False
            )
        except LLMInvocationFailed as e:
            logger.error("llm-suggest failed", error=str(e))
            return JSONResponse(
                {"error": "Failed to generate suggestions."},
                status_code=500,
                headers=rate_limit_headers,
            )

        return JSONResponse(
            SuggestResponse(suggestions=response.text).model_dump(),
            headers=rate_limit_headers,
        )

    @app.post("/summary")
    async def summary(request: dict, req: Request):
        rate_limit_headers = check_rate_limit("summary", req)

        try:
            request_model = SummaryRequest.model_validate(request)
        except ValidationError as e:
            return _bad_request(_validation_message(e), rate_limit_headers)

        svc = _services(req)
        patient = None
        if request_model.patient_id and svc.patient_store is not None:
            try:
                patient = await svc.patient_store.get_patient(request_model.patient_id)
            except Exception as e:
                logger.warning("Patient lookup failed", error=str(e), stage="summary")

        prompt = build_vitals_summary_prompt(
            format_vitals(request_model.latest_vitals),
            format_patient_details(patient) or None,
        )
        try:
            response = await svc.invoker.invoke(prompt, request_model.model)
        except LLMInvocationFailed as e:
            logger.error("summary failed", error=str(e))
            return JSONResponse(
                {"error": "Failed to generate summary", "details": str(e)},
                status_code=500,
                headers=rate_limit_headers,
            )

        response_data = SummaryResponse(
            summary=response.text,
            patient_details=patient,
            vitals_analyzed=count_readings(request_model.latest_vitals),
        )
        return JSONResponse(response_data.model_dump(by_alias=True), headers=rate_limit_headers)

    @app.post("/transcribe")
    async def transcribe(request: dict, req: Request):
        rate_limit_headers = check_rate_limit("transcribe", req)

        try:
            request_model = TranscribeRequest.model_validate(request)
            audio = validate_audio_data(request_model.audio)
        except ValidationError as e:
            return _bad_request(_validation_message(e), rate_limit_headers)
        except ValueError as e:
            return _bad_request(str(e), rate_limit_headers)

        svc = _services(req)
        language = request_model.language
        try:
            transcription = await svc.translation_client.speech_to_text(
                audio, language, request_model.audio_format, request_model.sampling_rate
            )
        except TranslationError as e:
            logger.error("transcribe failed", error=str(e), language=language)
            return JSONResponse(
                {"error": "Speech recognition failed", "details": str(e)},
                status_code=500,
                headers=rate_limit_headers,
            )

        translated = None
        if request_model.translate_to_english and language != "en" and transcription.strip():
            try:
                translated = await svc.translation_client.translate(transcription, language, "en")
            except TranslationError as e:
                logger.warning("Translation to English failed, returning original", error=str(e))
                translated = transcription

        response_data = TranscribeResponse(
            original_text=transcription,
            translated_text=translated,
            source_language=language,
        )
        return JSONResponse(response_data.model_dump(by_alias=True), headers=rate_limit_headers)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
