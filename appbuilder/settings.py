import os
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env")

class Settings(BaseSettings):
    EXPECTED_SECRET: str = "change-me"

    GITHUB_USERNAME: str = ""
    GITHUB_TOKEN: str = ""
    GITHUB_API_BASE: str = "https://api.github.com"
    DEFAULT_BRANCH: str = "main"
    PAGES_BUILD_PATH: str = "/"
    REPO_SETTLE_SECONDS: float = 2.0
    REPO_READY_ATTEMPTS: int = 5

    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.groq.com/openai/v1"
    GENERATION_MODEL: str = "llama-3.3-70b-versatile"
    GENERATION_MAX_TOKENS: int = 4000
    GENERATION_TIMEOUT_SECONDS: float = 120.0

    HTTP_TIMEOUT_SECONDS: float = 20.0
    NOTIFY_MAX_ATTEMPTS: int = 5
    NOTIFY_ON_FAILURE: bool = False

    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = ""

    model_config = SettingsConfigDict(env_file=ENV_PATH, env_file_encoding="utf-8", extra="ignore")
