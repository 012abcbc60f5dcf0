"""
Configuration module for the Study Assistant API.
Loads settings from environment variables or .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root (parent of app/ directory)
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
load_dotenv(_env_path)


class Config:
    """Application configuration."""

    # Database settings
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./study_assistant.db"))

    # Uploaded PDFs are kept here, one uuid-named file per document
    UPLOAD_DIR: Path = Path(os.getenv("UPLOAD_DIR", "./uploads"))
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))

    # API settings
    API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]

    # Bearer tokens are issued by the auth service and only verified here
    JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Search settings
    SEARCH_MIN_QUERY_LENGTH: int = int(os.getenv("SEARCH_MIN_QUERY_LENGTH", "2"))
    SEARCH_RESULT_LIMIT: int = int(os.getenv("SEARCH_RESULT_LIMIT", "5"))

    # LLM Provider settings
    # Supported providers: "gemini", "openai", "ollama"
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")

    # Google Gemini settings
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # OpenAI settings
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

    # Ollama settings (local models)
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3.2")

    # Common LLM settings
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "8192"))

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.JWT_SECRET:
            raise ValueError("JWT_SECRET must be set to verify bearer tokens")

        if cls.UPLOAD_DIR.exists() and not cls.UPLOAD_DIR.is_dir():
            raise ValueError(f"UPLOAD_DIR must be a directory: {cls.UPLOAD_DIR}")
        cls.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

        if cls.SEARCH_MIN_QUERY_LENGTH < 1 or cls.SEARCH_RESULT_LIMIT < 1:
            raise ValueError(
                "SEARCH_MIN_QUERY_LENGTH and SEARCH_RESULT_LIMIT must be positive. "
                f"Got: {cls.SEARCH_MIN_QUERY_LENGTH}, {cls.SEARCH_RESULT_LIMIT}"
            )

    @classmethod
    def validate_llm_config(cls) -> None:
        """Validate LLM provider configuration."""
        provider = cls.LLM_PROVIDER.lower()

        if provider not in ("gemini", "openai", "ollama"):
            raise ValueError(
                f"LLM_PROVIDER must be one of: gemini, openai, ollama. "
                f"Got: {provider}"
            )

        if provider == "gemini" and not cls.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY must be set when using Gemini provider")

        if provider == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY must be set when using OpenAI provider")


# Singleton config instance
config = Config()
