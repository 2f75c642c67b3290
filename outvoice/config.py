from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./proposals.db"
    APP_NAME: str = "In-N-OutVoice"
    DEFAULT_CURRENCY: str = "USD"
    LOG_LEVEL: str = "INFO"

    # PDF page geometry — millimetres
    PDF_DEFAULT_FORMAT: str = "A4"  # 'A4' | 'Letter'
    PDF_MARGIN_MM: float = 20.0
    PDF_LINE_HEIGHT_MM: float = 7.0

    class Config:
        env_file = ".env"


settings = Settings()
