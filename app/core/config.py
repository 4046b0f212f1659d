from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from pydantic import field_validator

TRUE_VALUES = ("true", "1", "yes", "on")


class Settings(BaseSettings):
    # Base de datos: DATABASE_URL tiene prioridad (ej: sqlite:// en tests)
    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = 'abs_oms'
    POSTGRES_USER: str = 'abs_user'
    POSTGRES_PASSWORD: str = 'abs_pass'

    # Broker y backend de Celery
    REDIS_HOST: str = 'redis'
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # Tokens de acceso
    APP_SECRET_STRING: str = 'change-me-abs-oms-secret'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # SMTP y notificaciones
    EMAIL_SMTP_SERVER: str = 'smtp.gmail.com'
    EMAIL_SMTP_PORT: int = 587
    EMAIL_USE_TLS: bool = True
    EMAIL_USERNAME: str = ''
    EMAIL_PASSWORD: str = ''
    EMAIL_FROM: str = ''
    EMAIL_FROM_NAME: str = 'ABS OMS'
    EMAIL_NOTIFICATIONS_ENABLED: bool = True
    FRONTEND_URL: str = 'http://localhost:3000'

    CORS_ORIGINS: List[str] = ["*"]

    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("DEBUG", "EMAIL_USE_TLS", "EMAIL_NOTIFICATIONS_ENABLED", mode="before")
    @classmethod
    def parse_flag(cls, v):
        # Acepta valores con comillas desde .env ("true", 'on', 1)
        if isinstance(v, str):
            return v.strip().strip('"\'').lower() in TRUE_VALUES
        return bool(v)

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
