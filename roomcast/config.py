from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Roomcast"
    database_url: str = "sqlite:///./roomcast.db"
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    auto_migrate: bool = True
    create_tables: bool = False
    root_password: str | None = Field(default=None, alias="ROOMCAST_ROOT_PASSWORD")
    admin_password: str | None = Field(default=None, alias="ROOMCAST_ADMIN_PASSWORD")
    broadcast_password: str | None = Field(default=None, alias="ROOMCAST_BROADCAST_PASSWORD")
    kick_message: str = "You were removed by Super Admin"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, populate_by_name=True)

    def role_password(self, role: str) -> str | None:
        return {
            "superadmin": self.root_password,
            "admin": self.admin_password,
            "broadcast": self.broadcast_password,
        }.get(role)


@lru_cache
def get_settings() -> Settings:
    return Settings()
