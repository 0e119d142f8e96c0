from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "speechable"
    environment: str = "local"
    debug: bool = True
    log_level: str = "INFO"

    mongo_scheme: str = "mongodb+srv"
    mongo_port: int = 27017
    mongo_host: str = "localhost"
    mongo_db: str = "speechable"
    mongo_password: str | None = None
    mongo_params: str | None = None
    mongo_user: str | None = None

    jwt_algorithm: str = "HS256"
    jwt_secret_key: str = "very-secret-key"
    jwt_expires_days: int = 90
    jwt_cookie_name: str = "jwt"

    bcrypt_rounds: int = 12
    password_min_length: int = 8
    password_reset_pin_ttl_minutes: int = 10
    password_reset_max_attempts: int = 5
    reset_request_cooldown_seconds: int = 60

    email_from: str = "noreply@speechable.app"
    email_from_name: str = "Speechable Team"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True

    redis_db: int = 0
    redis_port: int = 6379
    redis_host: str = "localhost"
    redis_password: str | None = None

    model_config = SettingsConfigDict(env_file=(".env",), case_sensitive=False, extra="ignore")

    @property
    def mongo_uri(self) -> str:
        auth = ""
        if self.mongo_user and self.mongo_password:
            auth = f"{self.mongo_user}:{self.mongo_password}@"
        host = self.mongo_host
        if self.mongo_scheme == "mongodb":
            host = f"{host}:{self.mongo_port}"
        params = f"?{self.mongo_params}" if self.mongo_params else "?retryWrites=true&w=majority"
        return f"{self.mongo_scheme}://{auth}{host}/{self.mongo_db}{params}"


settings = Settings()
