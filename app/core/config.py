from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

OPENAI_KEY_PLACEHOLDER = "your_openai_api_key_here"


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "SmartExpenseTracker"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_EXPENSES_TABLE: str = Field(default="smart-expense-expenses", validation_alias="DYNAMO_TABLE_EXPENSES")

    # JWT Authentication (tokens are issued elsewhere, we only verify them)
    JWT_SECRET_KEY: str = Field(default="b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9", validation_alias="JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"

    # OpenAI narrative
    OPENAI_API_KEY: str = Field(default=OPENAI_KEY_PLACEHOLDER)
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_MAX_TOKENS: int = 500
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_TIMEOUT_SECONDS: float = 5.0

    # Report formatting
    CURRENCY_SYMBOL: str = "₹"
    CONCENTRATION_THRESHOLD_PERCENT: int = 40

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, populate_by_name=True, extra="ignore")


settings = Settings()
