"""AI provider classification.

Two kinds of provider:

- Built-in: OpenClaw auto-detects these from their API-key env var alone.
  We never write ``models.providers`` entries for them; the agent rejects
  such entries for missing required fields.
- Custom: not in OpenClaw's catalogue, so they need an explicit descriptor
  (``api``, ``baseUrl`` and a non-empty ``models`` list).

The classifier also tracks which providers are eligible to be the default
model source and picks the primary model when none is configured.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from .document import Document
from .document import delete_nested
from .document import get_nested
from .document import set_nested
from .env_schema import PRIMARY_MODEL_ENV
from .errors import NoProviderConfiguredError
from .errors import ProviderConfigError

logger = logging.getLogger(__name__)

ProviderKind = Literal["builtin", "custom"]

PROVIDERS_PATH = "models.providers"
PRIMARY_MODEL_PATH = "agents.defaults.model.primary"


@dataclass(frozen=True)
class BuiltinProvider:
    """A provider OpenClaw recognizes from an API key alone.

    Any one of ``env_vars`` enables it.
    """

    name: str
    label: str
    env_vars: tuple[str, ...]
    default_model: str


@dataclass(frozen=True)
class CustomProviderSpec:
    """Catalogue entry for a provider that needs an explicit descriptor.

    Attributes:
        name: Key under ``models.providers``
        label: Display name
        gate: Env vars that must all be set to enable the provider
        api_key_env: Env var copied into the descriptor's ``apiKey``
        api: Default API dialect (None = must come from env)
        base_url: Default endpoint (None = must come from env)
        models: Default model list (empty = must come from env)
        default_model: Primary model when this provider wins selection
        env_prefix: Prefix for the ``_API_TYPE``/``_BASE_URL``/``_MODELS`` overrides
        base_url_suffix: Appended to the base URL when missing
        bedrock: Endpoint derived from the AWS region instead of a URL
    """

    name: str
    label: str
    gate: tuple[str, ...]
    env_prefix: str
    api_key_env: str | None = None
    api: str | None = None
    base_url: str | None = None
    models: tuple[dict[str, Any], ...] = ()
    default_model: str | None = None
    base_url_suffix: str | None = None
    bedrock: bool = False

    @property
    def api_env(self) -> str:
        return f"{self.env_prefix}_API_TYPE"

    @property
    def base_url_env(self) -> str:
        return f"{self.env_prefix}_BASE_URL"

    @property
    def models_env(self) -> str:
        return f"{self.env_prefix}_MODELS"


# ── Built-in providers ────────────────────────────────────────────────────────

BUILTIN_PROVIDERS: tuple[BuiltinProvider, ...] = (
    BuiltinProvider("anthropic", "Anthropic", ("ANTHROPIC_API_KEY",), "anthropic/claude-opus-4-5-20251101"),
    BuiltinProvider("openai", "OpenAI", ("OPENAI_API_KEY",), "openai/gpt-5.2"),
    BuiltinProvider("openrouter", "OpenRouter", ("OPENROUTER_API_KEY",), "openrouter/anthropic/claude-opus-4-5"),
    BuiltinProvider("google", "Google Gemini", ("GEMINI_API_KEY",), "google/gemini-2.5-pro"),
    BuiltinProvider("opencode", "OpenCode", ("OPENCODE_API_KEY", "OPENCODE_ZEN_API_KEY"), "opencode/claude-opus-4-5"),
    BuiltinProvider("github-copilot", "GitHub Copilot", ("COPILOT_GITHUB_TOKEN",), "github-copilot/claude-opus-4-5"),
    BuiltinProvider("xai", "xAI", ("XAI_API_KEY",), "xai/grok-3"),
    BuiltinProvider("groq", "Groq", ("GROQ_API_KEY",), "groq/llama-3.3-70b-versatile"),
    BuiltinProvider("mistral", "Mistral", ("MISTRAL_API_KEY",), "mistral/mistral-large-latest"),
    BuiltinProvider("cerebras", "Cerebras", ("CEREBRAS_API_KEY",), "cerebras/llama-3.3-70b"),
    BuiltinProvider("zai", "ZAI", ("ZAI_API_KEY",), "zai/glm-4.7"),
    BuiltinProvider(
        "vercel-ai-gateway", "Vercel AI Gateway", ("AI_GATEWAY_API_KEY",), "vercel-ai-gateway/anthropic/claude-opus-4.5"
    ),
)

# ── Custom providers ──────────────────────────────────────────────────────────

CUSTOM_PROVIDERS: tuple[CustomProviderSpec, ...] = (
    CustomProviderSpec(
        name="venice",
        label="Venice",
        gate=("VENICE_API_KEY",),
        env_prefix="VENICE",
        api_key_env="VENICE_API_KEY",
        api="openai-completions",
        base_url="https://api.venice.ai/api/v1",
        models=({"id": "llama-3.3-70b", "name": "Llama 3.3 70B", "contextWindow": 128000},),
        default_model="venice/llama-3.3-70b",
    ),
    CustomProviderSpec(
        name="moonshot",
        label="Moonshot",
        gate=("MOONSHOT_API_KEY",),
        env_prefix="MOONSHOT",
        api_key_env="MOONSHOT_API_KEY",
        api="openai-completions",
        base_url="https://api.moonshot.ai/v1",
        models=({"id": "kimi-k2.5", "name": "Kimi K2.5", "contextWindow": 128000},),
        default_model="moonshot/kimi-k2.5",
    ),
    CustomProviderSpec(
        name="kimi-coding",
        label="Kimi Coding",
        gate=("KIMI_API_KEY",),
        env_prefix="KIMI",
        api_key_env="KIMI_API_KEY",
        api="anthropic-messages",
        base_url="https://api.moonshot.ai/anthropic",
        models=({"id": "k2p5", "name": "Kimi K2P5", "contextWindow": 128000},),
        default_model="kimi-coding/k2p5",
    ),
    CustomProviderSpec(
        name="minimax",
        label="MiniMax",
        gate=("MINIMAX_API_KEY",),
        env_prefix="MINIMAX",
        api_key_env="MINIMAX_API_KEY",
        api="anthropic-messages",
        base_url="https://api.minimax.io/anthropic",
        models=({"id": "MiniMax-M2.1", "name": "MiniMax M2.1", "contextWindow": 200000},),
        default_model="minimax/MiniMax-M2.1",
    ),
    CustomProviderSpec(
        name="synthetic",
        label="Synthetic",
        gate=("SYNTHETIC_API_KEY",),
        env_prefix="SYNTHETIC",
        api_key_env="SYNTHETIC_API_KEY",
        api="anthropic-messages",
        base_url="https://api.synthetic.new/anthropic",
        models=({"id": "hf:MiniMaxAI/MiniMax-M2.1", "name": "MiniMax M2.1", "contextWindow": 192000},),
        default_model="synthetic/hf:MiniMaxAI/MiniMax-M2.1",
    ),
    CustomProviderSpec(
        name="xiaomi",
        label="Xiaomi MiMo",
        gate=("XIAOMI_API_KEY",),
        env_prefix="XIAOMI",
        api_key_env="XIAOMI_API_KEY",
        api="anthropic-messages",
        base_url="https://api.xiaomimimo.com/anthropic",
        models=({"id": "mimo-v2-flash", "name": "MiMo v2 Flash", "contextWindow": 262144},),
        default_model="xiaomi/mimo-v2-flash",
    ),
    CustomProviderSpec(
        name="amazon-bedrock",
        label="Amazon Bedrock",
        gate=("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"),
        env_prefix="BEDROCK",
        api="bedrock-converse-stream",
        models=(
            {
                "id": "anthropic.claude-opus-4-5-20251101-v1:0",
                "name": "Claude Opus 4.5 (Bedrock)",
                "contextWindow": 200000,
            },
            {
                "id": "anthropic.claude-sonnet-4-5-20250929-v1:0",
                "name": "Claude Sonnet 4.5 (Bedrock)",
                "contextWindow": 200000,
            },
        ),
        default_model="amazon-bedrock/anthropic.claude-opus-4-5-20251101-v1:0",
        bedrock=True,
    ),
    CustomProviderSpec(
        name="ollama",
        label="Ollama",
        gate=("OLLAMA_BASE_URL",),
        env_prefix="OLLAMA",
        api="openai-completions",
        models=({"id": "llama3.3", "name": "Llama 3.3", "contextWindow": 128000},),
        default_model="ollama/llama3.3",
        base_url_suffix="/v1",
    ),
    CustomProviderSpec(
        name="litellm",
        label="LiteLLM",
        gate=("LITELLM_API_KEY",),
        env_prefix="LITELLM",
        api_key_env="LITELLM_API_KEY",
        api="openai-completions",
    ),
    CustomProviderSpec(
        name="openai-compatible",
        label="OpenAI-compatible endpoint",
        gate=("OPENAI_COMPATIBLE_API_KEY",),
        env_prefix="OPENAI_COMPATIBLE",
        api_key_env="OPENAI_COMPATIBLE_API_KEY",
    ),
)

# First eligible provider in this order supplies the primary model
PRIMARY_PRIORITY: tuple[str, ...] = (
    "anthropic",
    "openai",
    "openrouter",
    "google",
    "opencode",
    "github-copilot",
    "xai",
    "groq",
    "mistral",
    "cerebras",
    "venice",
    "moonshot",
    "kimi-coding",
    "minimax",
    "synthetic",
    "zai",
    "vercel-ai-gateway",
    "xiaomi",
    "amazon-bedrock",
    "ollama",
    "litellm",
    "openai-compatible",
)

_BUILTIN_BY_NAME = {p.name: p for p in BUILTIN_PROVIDERS}
_CUSTOM_BY_NAME = {p.name: p for p in CUSTOM_PROVIDERS}

# Descriptor field name -> name used in diagnostics
_FIELD_LABELS = {"api": "apiType", "baseUrl": "baseUrl", "models": "models"}


class ModelDefinition(BaseModel):
    """One model offered by a custom provider."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Model identifier sent to the provider")
    name: str | None = Field(None, description="Display name")
    contextWindow: int | None = Field(None, description="Context window in tokens")


class ProviderDescriptor(BaseModel):
    """Endpoint descriptor required for a custom provider."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    api: str = Field(..., min_length=1, description="API dialect (e.g. 'openai-completions')")
    base_url: str = Field(..., alias="baseUrl", min_length=1, description="Endpoint base URL")
    models: list[ModelDefinition] = Field(..., min_length=1, description="Models offered")
    api_key: str | None = Field(None, alias="apiKey", description="API key sent to the endpoint")

    def to_entry(self) -> dict[str, Any]:
        """Convert to the ``models.providers.<name>`` document shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ProviderClassification:
    """Result of classifying one provider name."""

    name: str
    kind: ProviderKind
    descriptor: ProviderDescriptor | None = None

    @property
    def is_builtin(self) -> bool:
        return self.kind == "builtin"


@dataclass
class ProviderResolution:
    """Outcome of the classification pass over a synthesized document."""

    eligible: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    primary_model: str | None = None


def _first_error_field(error: ValidationError) -> str:
    loc = error.errors()[0].get("loc") or ("api",)
    return _FIELD_LABELS.get(str(loc[0]), str(loc[0]))


def validate_descriptor(name: str, entry: Any) -> ProviderDescriptor:
    """Validate a document-supplied provider entry.

    Raises:
        ProviderConfigError: Naming the first missing or invalid field
    """
    if not isinstance(entry, dict):
        raise ProviderConfigError(name, "apiType")
    try:
        return ProviderDescriptor.model_validate(entry)
    except ValidationError as e:
        raise ProviderConfigError(name, _first_error_field(e)) from e


class ProviderClassifier:
    """Classify providers against the built-in allow-list and custom catalogue.

    Contract:
    - Inputs: an environment mapping (read only)
    - Outputs: env-derived ``models`` fragments, classifications, eligibility
    - Errors: ProviderConfigError for half-specified custom providers,
      NoProviderConfiguredError when nothing is eligible
    """

    def __init__(self, environ: Mapping[str, str]):
        self.environ = environ

    def _get(self, name: str) -> str | None:
        value = self.environ.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    # ----- Classification -----

    def is_builtin(self, name: str) -> bool:
        return name in _BUILTIN_BY_NAME

    def builtin_enabled(self, name: str) -> bool:
        provider = _BUILTIN_BY_NAME.get(name)
        return bool(provider and any(self._get(env) for env in provider.env_vars))

    def custom_enabled(self, name: str) -> bool:
        spec = _CUSTOM_BY_NAME.get(name)
        return bool(spec and all(self._get(env) for env in spec.gate))

    def classify(self, name: str) -> ProviderClassification:
        """Classify a provider by name.

        Built-ins classify without a descriptor. Catalogued custom providers
        that are enabled get their env-derived descriptor; other custom names
        (defined only in documents) classify without one.
        """
        if self.is_builtin(name):
            return ProviderClassification(name=name, kind="builtin")
        spec = _CUSTOM_BY_NAME.get(name)
        if spec and self.custom_enabled(name):
            return ProviderClassification(name=name, kind="custom", descriptor=self._descriptor_from_env(spec))
        return ProviderClassification(name=name, kind="custom")

    def enabled_builtins(self) -> list[BuiltinProvider]:
        return [p for p in BUILTIN_PROVIDERS if self.builtin_enabled(p.name)]

    def enabled_custom(self) -> list[CustomProviderSpec]:
        return [spec for spec in CUSTOM_PROVIDERS if self.custom_enabled(spec.name)]

    def _descriptor_from_env(self, spec: CustomProviderSpec) -> ProviderDescriptor:
        api = self._get(spec.api_env) or spec.api
        if not api:
            raise ProviderConfigError(spec.name, "apiType", spec.api_env)

        if spec.bedrock:
            base_url = self._get(spec.base_url_env) or f"https://bedrock-runtime.{self.bedrock_region()}.amazonaws.com"
        else:
            base_url = self._get(spec.base_url_env) or spec.base_url
        base_url = (base_url or "").rstrip("/")
        if not base_url:
            raise ProviderConfigError(spec.name, "baseUrl", spec.base_url_env)
        if spec.base_url_suffix and not base_url.endswith(spec.base_url_suffix):
            base_url = f"{base_url}{spec.base_url_suffix}"

        models_raw = self._get(spec.models_env)
        if models_raw:
            models: list[dict[str, Any]] = [
                {"id": model_id, "name": model_id} for model_id in (s.strip() for s in models_raw.split(",")) if model_id
            ]
        else:
            models = [dict(m) for m in spec.models]
        if not models:
            raise ProviderConfigError(spec.name, "models", spec.models_env)

        entry: dict[str, Any] = {"api": api, "baseUrl": base_url, "models": models}
        if spec.api_key_env:
            entry["apiKey"] = self._get(spec.api_key_env)
        try:
            return ProviderDescriptor.model_validate(entry)
        except ValidationError as e:
            field_name = _first_error_field(e)
            variables = {"apiType": spec.api_env, "baseUrl": spec.base_url_env, "models": spec.models_env}
            raise ProviderConfigError(spec.name, field_name, variables.get(field_name)) from e

    def bedrock_region(self) -> str:
        return self._get("AWS_REGION") or self._get("AWS_DEFAULT_REGION") or "us-east-1"

    # ----- Env layer fragment -----

    def env_models_document(self) -> Document:
        """Build the env layer's ``models`` subtree for enabled custom providers.

        Raises:
            ProviderConfigError: If an enabled custom provider is incomplete
        """
        models: Document = {}
        for spec in self.enabled_custom():
            logger.info(f"Configuring {spec.label} provider from env")
            descriptor = self._descriptor_from_env(spec)
            models.setdefault("providers", {})[spec.name] = descriptor.to_entry()
            if spec.bedrock:
                models["bedrockDiscovery"] = {
                    "enabled": True,
                    "region": self.bedrock_region(),
                    "providerFilter": self._get("BEDROCK_PROVIDER_FILTER") or "anthropic",
                    "refreshInterval": 3600,
                }
        return models

    # ----- Classification pass over the synthesized document -----

    def resolve(self, document: Document, custom: Document) -> ProviderResolution:
        """Classify every ``models.providers`` entry in place and pick a primary model.

        - Built-in entries are removed (the agent auto-detects them)
        - Catalogued custom entries whose gate is closed are removed unless the
          custom document defines them (stale persisted state)
        - Remaining entries must be valid descriptors

        Args:
            document: Synthesized document, modified in place
            custom: The deployer's custom document (read only)

        Returns:
            ProviderResolution with the eligibility list and primary model

        Raises:
            ProviderConfigError: For an invalid custom entry
            NoProviderConfiguredError: If no provider is eligible
        """
        resolution = ProviderResolution()
        custom_providers = get_nested(custom, PROVIDERS_PATH, {})
        if not isinstance(custom_providers, dict):
            custom_providers = {}

        providers = get_nested(document, PROVIDERS_PATH)
        if providers is not None and not isinstance(providers, dict):
            raise ProviderConfigError(PROVIDERS_PATH, "models")

        valid_custom: list[str] = []
        for name in sorted(providers or {}):
            classification = self.classify(name)
            if classification.is_builtin:
                logger.info(f"Removing models.providers.{name} (built-in, detected from its API key)")
                delete_nested(document, f"{PROVIDERS_PATH}.{name}")
                resolution.removed.append(name)
                continue
            if name in _CUSTOM_BY_NAME and not self.custom_enabled(name) and name not in custom_providers:
                gate = "+".join(_CUSTOM_BY_NAME[name].gate)
                logger.info(f"Removing models.providers.{name} ({gate} not set)")
                delete_nested(document, f"{PROVIDERS_PATH}.{name}")
                resolution.removed.append(name)
                if name == "amazon-bedrock":
                    delete_nested(document, "models.bedrockDiscovery")
                continue
            validate_descriptor(name, providers[name])
            valid_custom.append(name)

        for provider in self.enabled_builtins():
            logger.info(f"{provider.label} provider enabled ({'/'.join(provider.env_vars)} set)")

        resolution.eligible = self._order_eligible([p.name for p in self.enabled_builtins()] + valid_custom)
        if not resolution.eligible:
            raise NoProviderConfiguredError(self.enabling_variables())

        resolution.primary_model = self._select_primary(document, custom, resolution.eligible)
        return resolution

    def _order_eligible(self, names: list[str]) -> list[str]:
        ranked = [name for name in PRIMARY_PRIORITY if name in names]
        return ranked + sorted(name for name in names if name not in PRIMARY_PRIORITY)

    def _select_primary(self, document: Document, custom: Document, eligible: list[str]) -> str | None:
        """Keep the configured primary model unless it was auto-selected for a provider no longer eligible."""
        configured = get_nested(document, PRIMARY_MODEL_PATH)
        if isinstance(configured, str) and configured:
            explicit = configured in (self._get(PRIMARY_MODEL_ENV), get_nested(custom, PRIMARY_MODEL_PATH))
            if explicit or configured.split("/", 1)[0] in eligible:
                logger.info(f"Primary model (configured): {configured}")
                return configured
            logger.info(f"Primary model {configured} belongs to a provider that is no longer enabled; reselecting")

        model = self.default_model_for(eligible[0], document)
        if model:
            set_nested(document, PRIMARY_MODEL_PATH, model)
            logger.info(f"Primary model (auto): {model}")
        return model

    def default_model_for(self, name: str, document: Document) -> str | None:
        if name in _BUILTIN_BY_NAME:
            return _BUILTIN_BY_NAME[name].default_model
        spec = _CUSTOM_BY_NAME.get(name)
        if spec and spec.default_model:
            return spec.default_model
        models = get_nested(document, f"{PROVIDERS_PATH}.{name}.models") or []
        if models and isinstance(models[0], dict) and models[0].get("id"):
            return f"{name}/{models[0]['id']}"
        return None

    @staticmethod
    def enabling_variables() -> list[str]:
        """Every env var (or var pair) that can enable a provider."""
        names = [env for p in BUILTIN_PROVIDERS for env in p.env_vars]
        names += ["+".join(spec.gate) for spec in CUSTOM_PROVIDERS]
        return names


__all__ = [
    "BuiltinProvider",
    "CustomProviderSpec",
    "BUILTIN_PROVIDERS",
    "CUSTOM_PROVIDERS",
    "PRIMARY_PRIORITY",
    "ModelDefinition",
    "ProviderDescriptor",
    "ProviderClassification",
    "ProviderResolution",
    "ProviderClassifier",
    "validate_descriptor",
]
