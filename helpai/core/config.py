from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    secret_key: str
    database_url: str = "sqlite:///./helpai.db"
    storage_backend: str = "database"   # "database" | "memory"
    backend_cors_origins: str = "http://localhost:5173"
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3:8b"
    assistant_temperature: float = 0.7
    assistant_max_tokens: int = 1024
    assistant_timeout: int = 60
    access_token_minutes: int = 60
    sql_echo: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "allow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.backend_cors_origins.split(",") if origin.strip()]
