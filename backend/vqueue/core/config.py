from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    env: str = "dev"
    log_level: str = "INFO"
    secret_key: str = "change_me_to_a_long_random_secret_value"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12
    database_url: str = "postgresql+psycopg2://queue:queue@db:5432/vqueue"
    backend_cors_origins: str = "http://localhost:3000"

    # Passwords
    bcrypt_rounds: int = 12
    allow_plaintext_passwords: bool = True

    # Operator credential for the super-admin panel (not stored in the database)
    super_admin_user: str = "admin"
    super_admin_password: str = "admin123"

    # Wait time estimation
    wait_sample_size: int = 5
    default_wait_minutes: int = 10

    # Notifications
    notify_spots_ahead: int = 3
    sms_provider: str = "log"  # "log" | "twilio"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_from_number: Optional[str] = None
    twilio_whatsapp: bool = True

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
