# tasks_api/config.py

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]


class Settings(BaseModel):
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 30
    bigquery_project_id: str = ""
    bigquery_dataset: str = ""
    bigquery_table: str = ""
    bigquery_location: str = "US"

    @classmethod
    def from_env(cls) -> "Settings":
        if not os.getenv("JWT_SECRET"):
            raise ValueError("Missing required environment variables: JWT_SECRET")

        return cls(
            jwt_secret=os.getenv("JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", "30")),
            bigquery_project_id=os.getenv("BIGQUERY_PROJECT_ID", ""),
            bigquery_dataset=os.getenv("BIGQUERY_DATASET", ""),
            bigquery_table=os.getenv("BIGQUERY_TABLE", ""),
            bigquery_location=os.getenv("BIGQUERY_LOCATION", "US"),
        )

    def require_bigquery(self) -> None:
        required = {
            "BIGQUERY_PROJECT_ID": self.bigquery_project_id,
            "BIGQUERY_DATASET": self.bigquery_dataset,
            "BIGQUERY_TABLE": self.bigquery_table,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
