from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "SALECALC"
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True
    RECEIPT_SCAN_ENABLED: bool = True
    RECEIPT_DRIFT_LOGGING: bool = True
    DOCUMENT_PREFIX_SALE: str = "V"
    DOCUMENT_PREFIX_RETURN: str = "R"
    DOCUMENT_PREFIX_EXCHANGE: str = "X"
    DOCUMENT_NUMBER_WIDTH: int = 6

settings = Settings()
