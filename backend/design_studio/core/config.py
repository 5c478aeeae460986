"""
Application configuration settings.

Responsibilities:
- Load environment variables
- Define endpoints and credentials for the AI gateway, Meshy and Supabase
- Configure generation, polling and pricing knobs
"""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "Furniture Design Studio"

    # AI generation gateway (OpenAI-compatible chat completions)
    AI_GATEWAY_URL: str = os.getenv(
        "AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions"
    )
    AI_GATEWAY_API_KEY: str = os.getenv("AI_GATEWAY_API_KEY", "")
    IMAGE_MODEL: str = os.getenv("IMAGE_MODEL", "google/gemini-2.5-flash-image-preview")
    TEXT_MODEL: str = os.getenv("TEXT_MODEL", "google/gemini-2.5-flash")

    # 3D reconstruction
    MESHY_API_BASE: str = os.getenv("MESHY_API_BASE", "https://api.meshy.ai/openapi/v1").rstrip("/")
    MESHY_API_KEY: str = os.getenv("MESHY_API_KEY", "")
    MESHY_AI_MODEL: str = os.getenv("MESHY_AI_MODEL", "meshy-4")

    # Data store
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""))
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "design-images")

    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "60"))

    # Generation batch
    VARIATION_COUNT: int = int(os.getenv("VARIATION_COUNT", "3"))
    CREDITS_PER_GENERATION: int = int(os.getenv("CREDITS_PER_GENERATION", "1"))
    FREE_MONTHLY_CREDITS: int = int(os.getenv("FREE_MONTHLY_CREDITS", "10"))
    ISOLATE_VARIATION_FAILURES: bool = _env_bool("ISOLATE_VARIATION_FAILURES", False)

    # 3D polling (seconds / attempts)
    POLL_INITIAL_DELAY: float = float(os.getenv("POLL_INITIAL_DELAY", "5"))
    POLL_INTERVAL: float = float(os.getenv("POLL_INTERVAL", "10"))
    POLL_MAX_ATTEMPTS: int = int(os.getenv("POLL_MAX_ATTEMPTS", "60"))
    MODEL_CACHE_SIZE: int = int(os.getenv("MODEL_CACHE_SIZE", "128"))

    # Pricing
    SELLING_MARKUP: float = float(os.getenv("SELLING_MARKUP", "1.2"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "")

settings = Settings()
