from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Настройки приложения из переменных окружения и файла .env"""

    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = ""
    db_name: str = "postgres"
    db_sslmode: str = "prefer"
    db_schema: str = "public"

    # Функции интроспекции схемы, вызываются как SELECT * FROM <schema>.<function>(...)
    list_tables_rpc: str = "get_public_tables"
    describe_table_rpc: str = "get_table_columns_info"

    fk_options_limit: int = Field(200, ge=100, le=200)

    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return Settings()
