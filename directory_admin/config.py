from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("BOTTIN_ENVIRONMENT", "NODE_ENV"),
    )
    firebase_credentials_path: str = str(PROJECT_ROOT / "credentials" / "firebase-service-account.json")
    project_id: str = "bottin2-3b41d"
    firestore_emulator_host: str = "localhost:8080"
    auth_emulator_host: str = "localhost:9099"
    backups_dir: str = str(PROJECT_ROOT / "backups")
    batch_size: int = 500
    parents_collection: str = "parents"
    students_collection: str = "students"
    parent_reference_fields: list[str] = ["parent1_id", "parent2_id"]
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    geocode_user_agent: str = "B2-School-Directory/1.0"
    geocode_country: str = "Canada"
    geocode_country_codes: str = "ca"
    geocode_min_interval_seconds: float = 1.1

    model_config = {
        "env_prefix": "BOTTIN_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
