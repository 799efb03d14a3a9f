"""
Translation Service Client - HTTP client for the Bhashini/ULCA inference API.

Translation is a two-step protocol:
  1. resolve a pipeline descriptor (callback URL + service id) for the source
     language from the ULCA pipeline endpoint
  2. POST the text and language pair to that callback URL

Descriptors are cached per source language with a TTL; invalidate_pipeline()
drops them on demand.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .cache import TTLCache
from .config import Settings

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("hi", "bn", "ta", "te", "mr", "gu", "kn")

ASR_SERVICE_IDS = {
    "hi": "ai4bharat/conformer-hi-gpu--t4",
    "ta": "ai4bharat/conformer-multilingual-dravidian-gpu--t4",
    "te": "ai4bharat/conformer-multilingual-dravidian-gpu--t4",
    "kn": "ai4bharat/conformer-multilingual-dravidian-gpu--t4",
    "mr": "ai4bharat/conformer-multilingual-indo_aryan-gpu--t4",
    "bn": "ai4bharat/conformer-multilingual-indo_aryan-gpu--t4",
    "gu": "ai4bharat/conformer-multilingual-indo_aryan-gpu--t4",
    "en": "ai4bharat/whisper-medium-en--gpu--t4",
}
DEFAULT_ASR_SERVICE_ID = ASR_SERVICE_IDS["en"]


class TranslationError(RuntimeError):
    """Descriptor lookup, transport or response-shape failure."""


@dataclass(frozen=True)
class PipelineDescriptor:
    callback_url: str
    service_id: str
    source_language: str


def get_asr_service_id(language: str) -> str:
    return ASR_SERVICE_IDS.get(language, DEFAULT_ASR_SERVICE_ID)


def extract_output_field(payload: Any, field_name: str) -> Optional[str]:
    """Read output[0][field_name] from any of the three response shapes.

    Shapes seen from the backend:
      {"pipelineResponse": [{"output": [{...}]}]}
      {"output": [{...}]}
      {"data": [{"output": [{...}]}]}
    """
    if not isinstance(payload, dict):
        return None

    def _wrapped_output(wrapper: str) -> Any:
        items = payload.get(wrapper)
        if isinstance(items, list) and items and isinstance(items[0], dict):
            return items[0].get("output")
        return None

    candidates = (_wrapped_output("pipelineResponse"), payload.get("output"), _wrapped_output("data"))
    for output in candidates:
        if isinstance(output, list) and output and isinstance(output[0], dict):
            value = output[0].get(field_name)
            if isinstance(value, str) and value:
                return value
    return None


def parse_pipeline_descriptor(payload: Any, source_language: str) -> PipelineDescriptor:
    try:
        config = payload["pipelineResponseConfig"][0]["config"][0]
        callback_url = config["callbackUrl"]
    except (KeyError, IndexError, TypeError) as e:
        raise TranslationError("No callback URL found in pipeline response") from e
    if not callback_url:
        raise TranslationError("No callback URL found in pipeline response")
    return PipelineDescriptor(
        callback_url=callback_url,
        service_id=config.get("serviceId", ""),
        source_language=source_language,
    )


class TranslationServiceClient:
    """Async client for translation and speech recognition."""

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.settings = settings
        self.client = http_client or httpx.AsyncClient(timeout=settings.translation_timeout_seconds)
        self.pipelines = cache if cache is not None else TTLCache(settings.pipeline_cache_ttl_seconds)

        if not settings.bhashini_api_key:
            logger.warning("BHASHINI_API_KEY is not set; translation calls will be rejected")

    def is_supported_language(self, language: Optional[str]) -> bool:
        return language in SUPPORTED_LANGUAGES

    def _inference_headers(self) -> dict:
        return {
            "Authorization": self.settings.bhashini_api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Id": self.settings.bhashini_user_id,
        }

    async def _post(self, url: str, payload: dict, headers: dict) -> Any:
        try:
            response = await self.client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Translation backend HTTP error: {e.response.status_code} - {e.response.text[:200]}")
            raise TranslationError(f"Translation backend request failed: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Translation backend connection error: {e}")
            raise TranslationError(f"Translation backend connection failed: {e}") from e
        except ValueError as e:
            raise TranslationError("Translation backend returned invalid JSON") from e

    async def resolve_pipeline(self, source_language: str) -> PipelineDescriptor:
        """Pipeline descriptor for a source language, cached with a TTL."""
        cached = self.pipelines.get(source_language)
        if cached is not None:
            return cached

        payload = {
            "pipelineTasks": [{
                "taskType": "translation",
                "config": {"language": {"sourceLanguage": source_language}},
            }],
            "pipelineRequestConfig": {"pipelineId": self.settings.ulca_pipeline_id},
        }
        headers = {
            "userID": self.settings.ulca_user_id,
            "ulcaApiKey": self.settings.ulca_api_key,
            "Content-Type": "application/json",
        }
        logger.info(f"Resolving translation pipeline for: {source_language}")
        data = await self._post(self.settings.ulca_pipeline_url, payload, headers)
        descriptor = parse_pipeline_descriptor(data, source_language)

        # Concurrent first use may race here; last writer wins
        self.pipelines.set(source_language, descriptor)
        return descriptor

    def invalidate_pipeline(self, source_language: Optional[str] = None) -> None:
        self.pipelines.invalidate(source_language)

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Translate one piece of text.

        Raises:
            TranslationError: when the descriptor, the call or the response shape fails
        """
        descriptor = await self.resolve_pipeline(source_language)
        payload = {
            "pipelineTasks": [{
                "taskType": "translation",
                "config": {
                    "language": {
                        "sourceLanguage": source_language,
                        "targetLanguage": target_language,
                    },
                    "serviceId": descriptor.service_id,
                },
            }],
            "inputData": {"input": [{"source": text}]},
        }
        logger.debug(f"Translating {len(text)} chars {source_language}->{target_language}")
        data = await self._post(descriptor.callback_url, payload, self._inference_headers())

        translated = extract_output_field(data, "target")
        if translated is None:
            raise TranslationError("Invalid translation response format")
        return translated

    async def speech_to_text(
        self,
        audio_b64: str,
        language: str = "en",
        audio_format: str = "webm",
        sampling_rate: int = 16000,
    ) -> str:
        """Transcribe base64 audio. Returns "" when the response has no transcript."""
        payload = {
            "pipelineTasks": [{
                "taskType": "asr",
                "config": {
                    "language": {"sourceLanguage": language},
                    "serviceId": get_asr_service_id(language),
                    "audioFormat": audio_format,
                    "samplingRate": sampling_rate,
                },
            }],
            "inputData": {"audio": [{"audioContent": audio_b64}]},
        }
        logger.info(f"Sending ASR request: language={language}, format={audio_format}, bytes={len(audio_b64)}")
        data = await self._post(self.settings.bhashini_callback_url, payload, self._inference_headers())

        transcript = extract_output_field(data, "source")
        if transcript is None:
            logger.error("Unexpected ASR response format")
            return ""
        return transcript

    async def aclose(self) -> None:
        await self.client.aclose()
