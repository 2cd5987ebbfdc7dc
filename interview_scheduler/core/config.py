from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Interview Scheduler"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    DATA_DIR: str = "./data"
    DIRECTORY_FILE: str | None = None

    DEFAULT_TIMEZONE: str = "America/New_York"
    DEFAULT_SLOT_DURATION_MINUTES: int = 60

    INVITATION_TTL_DAYS: int = 7
    PLACEHOLDER_LEAD_DAYS: int = 7
    PLACEHOLDER_START_TIME: str = "10:00"
    INTERVIEW_ELIGIBLE_STATUSES: list[str] = ["assessment", "phone_interview", "in_person_interview"]

    NOTICE_WINDOW_MINUTES: int = 120
    EMPLOYER_CANCEL_RESPECTS_NOTICE: bool = False

    FRONTEND_BASE_URL: str = "http://localhost:3000"

    EMAIL_API_KEY: str | None = None
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "Interviews <noreply@example.com>"
    EMAIL_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
