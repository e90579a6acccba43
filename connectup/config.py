import logging
from typing import Literal, Optional

from pydantic import field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .secrets_manager import SecretsManager

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    aws_region: str = "us-east-1"
    environment: str = "development"
    host: str = "localhost"
    db_username: str = "postgres"
    db_password: SecretStr = SecretStr("")
    database: str = "connectup"
    port: int = 5432
    # Full SQLAlchemy URL, takes precedence over the individual db_* fields
    database_url: Optional[str] = None
    store_backend: Literal["sql", "firestore"] = "sql"
    firebase_project_id: str = "connectup-app"
    notification_fetch_limit: int = 100
    log_level: str = "INFO"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("db_username", "db_password", mode="before")
    @classmethod
    def load_secrets(cls, v, info):
        if info.data.get("environment") == "production":
            try:
                secrets = SecretsManager(region_name=info.data.get("aws_region"))
                credentials = secrets.get_db_credentials()
                if info.field_name == "db_username":
                    v = credentials["username"]
                elif info.field_name == "db_password":
                    v = credentials["password"]
                return v
            except Exception as e:
                # Fall back to the env value when the secret can't be read
                logger.warning(f"Could not load {info.field_name} from Secrets Manager: {e}")
                return v
        return v

    @property
    def sqlalchemy_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.db_username}:{self.db_password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.database}"
        )

settings = Settings()
