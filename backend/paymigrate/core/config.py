from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_DATABASE_DSN: str = "sqlite:////tmp/database.db"
    LOG_LEVEL: str = "INFO"

    # Owner entities carrying legacy billing columns: polymorphic type -> table
    BILLING_OWNER_TYPES: dict[str, str] = {"User": "users", "Team": "teams"}

    # Migration pacing
    MIGRATION_BATCH_SIZE: int = 1000
    PROCESSOR_REQUEST_INTERVAL: float = 0.1  # seconds between processor API calls

    # Stripe
    stripe_api_key: str = ""

    # Braintree settings
    braintree_merchant_id: str = ""
    braintree_public_key: str = ""
    braintree_private_key: str = ""
    braintree_environment: str = "sandbox"  # "sandbox" or "production"


settings = Settings()
