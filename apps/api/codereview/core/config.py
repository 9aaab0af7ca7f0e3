from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "code-review-api"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "code_review"
    MONGODB_REVIEWS_COLLECTION: str = "code_reviews"

    GITHUB_TOKEN: str | None = None
    GITHUB_API_BASE: str = "https://api.github.com"
    GITHUB_TIMEOUT_SECONDS: float = 30.0

    LLM_PROVIDER: str = "auto"  # auto | gemini | ollama
    GEMINI_API_KEY: str | None = None
    GEMINI_CHAT_MODEL: str = "gemini-2.0-flash"
    OLLAMA_MODEL: str = "qwen2.5-coder:7b-instruct"
    OLLAMA_BASE_URL: str = "http://127.0.0.1:11434"
    OLLAMA_TIMEOUT_SECONDS: float = 300.0

    REPORT_MAX_TOKENS: int = 4000
    SUMMARY_MAX_TOKENS: int = 200
    LLM_TEMPERATURE: float = 0.3

    CODE_SAMPLE_MAX_FILES: int = 10
    CODE_SAMPLE_MAX_CHARS: int = 2000

    BULK_MAX_ITEMS: int = 50
    BULK_ITEM_DELAY_SECONDS: float = 1.0

settings = Settings()
