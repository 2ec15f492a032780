"""Application configuration via environment variables and YAML.

All service settings are prefixed with FEEDBACK_ and can be overridden via
environment variables (e.g. FEEDBACK_DEFAULT_MODEL=gpt-4o).

Policy config (retry/backoff, size limits, rate limit) is loaded from a YAML
file with environment override support.
Priority: environment variables > YAML file > code defaults.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings

load_dotenv()

ENV_PREFIX = "FEEDBACK_POLICY_"


class InvokerConfig(BaseModel):
    max_retries: int = 3
    backoff_base_ms: int = 1000
    timeout_seconds: float = 60.0
    temperature: float = 0.3
    max_tokens: int = 8000


class LimitsConfig(BaseModel):
    max_blocks: int = 100
    block_text_limit: int = 2000
    thread_body_limit: int = 500
    reply_body_limit: int = 300
    title_max: int = 50
    feedback_max: int = 300
    suggestion_max: int = 200
    summary_max: int = 500


class RateLimitConfig(BaseModel):
    max_reviews: int = 10
    window_seconds: int = 3600


class PolicyConfig(BaseModel):
    invoker: InvokerConfig = InvokerConfig()
    limits: LimitsConfig = LimitsConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()


_DEFAULT_SYSTEM_INSTRUCTION = """You are a concise editorial assistant. Follow these rules strictly:

BREVITY:
- Title: Max 5 words, start with action verb (e.g., "Add supporting evidence")
- Feedback: Max 2 sentences explaining the issue
- Suggestion: One specific, actionable step with example text

ACTIONABILITY:
- Provide specific replacement text when possible
- Never use vague phrases like "improve clarity" or "consider revising"

SEVERITY:
- critical: Factual errors, confusing content
- important: Weak arguments, tone issues
- suggestion: Style polish, formatting

GOOD: {"title":"Add data source","feedback":"Claim lacks evidence.","suggestion":"Add: 'Users grew 40% (Source: Analytics)'"}
BAD: {"title":"Improve writing","feedback":"Could be better.","suggestion":"Consider revising."}

Output valid JSON only."""

_DEFAULT_CONTINUATION_RULES = """CONTINUATION REVIEW RULES:
- You have access to previous feedback and user responses.
- Skip issues that were already addressed based on user responses.
- Only flag new issues or issues that persist despite user changes.
- Be aware that content may have changed since the last review.
- Reference the same block_ids when following up on existing issues."""


class PromptsConfig(BaseModel):
    system_instruction: str = _DEFAULT_SYSTEM_INSTRUCTION
    continuation_rules: str = _DEFAULT_CONTINUATION_RULES
    focus_area_definitions: dict[str, str] = {
        "content": (
            "Content Quality - Evaluate clarity, accuracy, completeness, and value. Look for "
            "vague statements, missing context, unsupported claims, or areas that need more detail."
        ),
        "tone": (
            "Tone & Voice - Assess consistency of voice, appropriateness for audience, and "
            "alignment with target tone. Flag jarring shifts in formality or inconsistent terminology."
        ),
        "flow": (
            "Flow & Structure - Analyze logical progression, transitions between ideas, paragraph "
            "structure, and overall organization. Identify awkward jumps or missing connections."
        ),
        "design": (
            "Design & Formatting - Review block usage, visual hierarchy, formatting choices, and "
            "readability. Suggest better block types or formatting improvements."
        ),
    }
    tone_definitions: dict[str, str] = {
        "professional": (
            "Professional - Clear, authoritative, and polished. Suitable for business content, "
            "technical documentation, and formal communications. Use industry-standard terminology "
            "and maintain objectivity."
        ),
        "casual": (
            "Casual - Conversational, friendly, and approachable. Suitable for blogs, social media, "
            "and informal communications. Use contractions and everyday language, but remain clear "
            "and coherent."
        ),
        "academic": (
            "Academic - Scholarly, precise, and evidence-based. Suitable for research, analysis, "
            "and educational content. Support claims with evidence and maintain formal structure."
        ),
        "friendly": (
            "Friendly - Warm, personable, and engaging. Suitable for community content, customer "
            "communications, and welcoming materials. Be encouraging and supportive while staying "
            "helpful."
        ),
    }
    default_tone: str = "professional"


def _apply_env_overrides(data: dict) -> dict:
    """Override YAML values with FEEDBACK_POLICY_<SECTION>_<KEY> env vars.

    Sections missing from the YAML are seeded from the code defaults so every
    policy knob can be set from the environment alone.
    """
    defaults = PolicyConfig().model_dump()
    for section_name, section_defaults in defaults.items():
        section = data.get(section_name)
        if section is None:
            section = {}
            data[section_name] = section
        if not isinstance(section, dict):
            continue
        for key, default in section_defaults.items():
            env_key = f"{ENV_PREFIX}{section_name.upper()}_{key.upper()}"
            env_val = os.environ.get(env_key)
            if env_val is None:
                continue
            # Coerce to the same type as the default value
            if isinstance(default, bool):
                section[key] = env_val.lower() in ("1", "true", "yes", "on")
            elif isinstance(default, int):
                section[key] = int(env_val)
            elif isinstance(default, float):
                section[key] = float(env_val)
            else:
                section[key] = env_val
    return data


def load_prompts_config(config_path: str = "config/prompts.yaml") -> PromptsConfig:
    """Load prompt templates from YAML, fall back to code defaults."""
    path = Path(config_path)
    data: dict = {}

    if path.exists():
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw) or {}

    return PromptsConfig.model_validate(data)


def load_policy_config(config_path: str = "config/policy.yaml") -> PolicyConfig:
    """Load policy config from YAML, apply env overrides, fall back to defaults."""
    path = Path(config_path)
    data: dict = {}

    if path.exists():
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw) or {}

    data = _apply_env_overrides(data)
    return PolicyConfig.model_validate(data)


class Settings(BaseSettings):
    """Service configuration. All fields map to FEEDBACK_<FIELD_NAME> env vars."""

    model_config = {"env_prefix": "FEEDBACK_"}

    ai_base_url: str = "https://api.openai.com/v1"
    ai_api_key: str = "not-set"
    default_model: str = "claude-sonnet-4-20250514"
    available_models: list[str] = [
        "claude-sonnet-4-20250514",
        "claude-opus-4",
        "gpt-4o",
        "gemini-2.0-flash",
    ]
    mock_mode: bool = False
    documents_dir: str = "documents"
    auth_token: str = "demo-token"
    policy_config_path: str = "config/policy.yaml"
    prompts_config_path: str = "config/prompts.yaml"
    cors_origins: str = "*"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 9030


settings = Settings()
policy_config = load_policy_config(settings.policy_config_path)
prompts_config = load_prompts_config(settings.prompts_config_path)

if __name__ == "__main__":
    print(settings)
    print(policy_config.model_dump())
