"""
Model Invoker - sends a prompt to one of several hosted LLM families.

The inference endpoint hosts three model families that each speak their own
request/response schema:
  - NOVA    compact multilingual models (default)
  - CLAUDE  long-context conversational models
  - MISTRAL instruction-tuned models

Each family has one encode/decode pair in FAMILY_CODECS; invoke() picks the
pair once from the model catalog and never branches on family elsewhere.
"""
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config

from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nova-lite"
CLAUDE_API_VERSION = "bedrock-2023-05-31"


class ModelFamily(str, Enum):
    NOVA = "nova"
    CLAUDE = "claude"
    MISTRAL = "mistral"


class LLMInvocationFailed(RuntimeError):
    """Raised for any transport, timeout or parsing failure of a model call."""

    def __init__(self, message: str, model_id: Optional[str] = None):
        super().__init__(message)
        self.model_id = model_id


class InvalidResponseFormat(ValueError):
    """The family-specific text field is missing from the response body."""


@dataclass(frozen=True)
class ModelSpec:
    family: ModelFamily
    provider_id: str


# Logical model id -> family + provider model id
MODEL_CATALOG: dict[str, ModelSpec] = {
    "claude-sonnet3.5": ModelSpec(ModelFamily.CLAUDE, "apac.anthropic.claude-3-5-sonnet-20240620-v1:0"),
    "claude-sonnet3.5v2": ModelSpec(ModelFamily.CLAUDE, "apac.anthropic.claude-3-5-sonnet-20241022-v2:0"),
    "claude-haiku3": ModelSpec(ModelFamily.CLAUDE, "apac.anthropic.claude-3-haiku-20240307-v1:0"),
    "mistral-large": ModelSpec(ModelFamily.MISTRAL, "mistral.mistral-large-2402-v1:0"),
    "mistral-8x7b": ModelSpec(ModelFamily.MISTRAL, "mistral.mixtral-8x7b-instruct-v0:1"),
    "mistral-7b": ModelSpec(ModelFamily.MISTRAL, "mistral.mistral-7b-instruct-v0:2"),
    "nova-pro": ModelSpec(ModelFamily.NOVA, "apac.amazon.nova-pro-v1:0"),
    "nova-lite": ModelSpec(ModelFamily.NOVA, "apac.amazon.nova-lite-v1:0"),
}


@dataclass(frozen=True)
class TokenUsage:
    input: int = 0
    output: int = 0
    total: int = 0


@dataclass(frozen=True)
class ModelResponse:
    text: str
    token_usage: TokenUsage
    latency_ms: int
    model_id: str
    family: ModelFamily


def resolve_model(model_id: Optional[str]) -> tuple[str, ModelSpec]:
    """Map a logical model id to its catalog entry, defaulting to nova-lite."""
    if model_id in MODEL_CATALOG:
        return model_id, MODEL_CATALOG[model_id]
    if model_id:
        logger.info(f"Unknown model '{model_id}', using {DEFAULT_MODEL}")
    return DEFAULT_MODEL, MODEL_CATALOG[DEFAULT_MODEL]


# --- Request encoders ---

def _encode_nova(prompt: str, max_tokens: int) -> dict:
    return {
        "inferenceConfig": {"max_new_tokens": max_tokens},
        "messages": [{"role": "user", "content": [{"text": prompt}]}],
    }


def _encode_claude(prompt: str, max_tokens: int) -> dict:
    return {
        "anthropic_version": CLAUDE_API_VERSION,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": [{"type": "text", "text": prompt}]}],
    }


def _encode_mistral(prompt: str, max_tokens: int) -> dict:
    return {"prompt": prompt, "max_tokens": max_tokens, "temperature": 0.0}


# --- Response decoders ---

def _first_text(items: Any, family: str) -> str:
    if not isinstance(items, list) or not items:
        raise InvalidResponseFormat(f"No valid content from {family} model")
    first = items[0]
    if not isinstance(first, dict) or not isinstance(first.get("text"), str):
        raise InvalidResponseFormat(f"No valid content from {family} model")
    return first["text"]


def _decode_nova(body: dict) -> str:
    message = (body.get("output") or {}).get("message") or {}
    return _first_text(message.get("content"), "Nova")


def _decode_claude(body: dict) -> str:
    return _first_text(body.get("content"), "Claude")


def _decode_mistral(body: dict) -> str:
    return _first_text(body.get("outputs"), "Mistral")


FAMILY_CODECS: dict[ModelFamily, tuple[Callable[[str, int], dict], Callable[[dict], str]]] = {
    ModelFamily.NOVA: (_encode_nova, _decode_nova),
    ModelFamily.CLAUDE: (_encode_claude, _decode_claude),
    ModelFamily.MISTRAL: (_encode_mistral, _decode_mistral),
}


def parse_usage(body: dict) -> TokenUsage:
    """Token counts under either camelCase or snake_case keys."""
    usage = body.get("usage") or {}
    input_tokens = usage.get("inputTokens", usage.get("input_tokens", 0)) or 0
    output_tokens = usage.get("outputTokens", usage.get("output_tokens", 0)) or 0
    total = usage.get("totalTokens") or input_tokens + output_tokens
    return TokenUsage(input=int(input_tokens), output=int(output_tokens), total=int(total))


def format_metadata_banner(model_id: str, usage: TokenUsage, latency_ms: int) -> str:
    return "\n".join([
        f"> _Generated using **{model_id}**_",
        f"> _Tokens used: {usage.input} in / {usage.output} out_",
        f"> _Time taken: **{latency_ms} ms**_",
    ])


class ModelInvoker:
    """Client for the hosted LLM endpoint."""

    def __init__(self, settings: Settings, client: Any = None):
        self.settings = settings
        self.timeout = settings.llm_timeout_seconds
        self.max_tokens = settings.llm_max_tokens
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=self.settings.aws_region,
                config=Config(
                    read_timeout=self.timeout,
                    connect_timeout=min(10.0, self.timeout),
                    retries={"total_max_attempts": 1},
                ),
            )
        return self._client

    def _invoke_sync(self, provider_id: str, request_body: dict) -> dict:
        response = self.client.invoke_model(
            modelId=provider_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(request_body),
        )
        raw = response["body"].read()
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    async def invoke(
        self,
        prompt: str,
        model_id: Optional[str] = None,
        include_metadata: bool = True,
    ) -> ModelResponse:
        """Run one prompt through the selected model.

        Args:
            prompt: Full prompt text
            model_id: Logical model id from MODEL_CATALOG (unknown ids use nova-lite)
            include_metadata: Prefix the text with a model/tokens/latency banner

        Returns:
            ModelResponse with the generated text and usage numbers

        Raises:
            LLMInvocationFailed: on any transport, timeout or parsing failure
        """
        model_name, spec = resolve_model(model_id or self.settings.default_model)
        encode, decode = FAMILY_CODECS[spec.family]
        request_body = encode(prompt, self.max_tokens)

        logger.info(f"Invoking model: {spec.provider_id} ({spec.family.value})")
        start = time.monotonic()
        try:
            body = await asyncio.wait_for(
                asyncio.to_thread(self._invoke_sync, spec.provider_id, request_body),
                timeout=self.timeout,
            )
            text = decode(body)
            usage = parse_usage(body)
        except asyncio.TimeoutError as e:
            logger.error(f"Model {model_name} timed out after {self.timeout}s")
            raise LLMInvocationFailed("Failed to get LLM response: timed out", model_name) from e
        except InvalidResponseFormat as e:
            logger.error(f"Model {model_name} returned an unexpected body: {e}")
            raise LLMInvocationFailed(f"Failed to get LLM response: {e}", model_name) from e
        except Exception as e:
            logger.error(f"Model {model_name} invocation failed: {e}")
            raise LLMInvocationFailed(f"Failed to get LLM response: {e}", model_name) from e

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            f"Model {model_name} responded in {latency_ms} ms "
            f"({usage.input} in / {usage.output} out)"
        )

        if include_metadata:
            text = f"{format_metadata_banner(model_name, usage, latency_ms)}\n\n{text}"

        return ModelResponse(
            text=text,
            token_usage=usage,
            latency_ms=latency_ms,
            model_id=model_name,
            family=spec.family,
        )
