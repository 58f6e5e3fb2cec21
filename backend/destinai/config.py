from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM provider: "openrouter" (OpenAI-compatible) or "anthropic"
    llm_provider: str = "openrouter"

    # OpenRouter
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "openai/gpt-4o-mini"
    openrouter_api_key: str = ""

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"

    # Per-call transport timeout; anything below 1 second is raised to 1
    llm_timeout_seconds: float = 45.0
    llm_max_tokens: int = 4000
    llm_temperature: float = 0.2

    # Rotating log file location, relative to the working directory unless absolute
    log_dir: str = "logs"

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def llm_timeout(self) -> float:
        return max(self.llm_timeout_seconds, 1.0)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
