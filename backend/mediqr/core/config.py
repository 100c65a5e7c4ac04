from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "MediQR"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./mediqr.db"

    # Blob keys of the persisted collections
    PATIENTS_KEY: str = "hospital_erp_patients"
    RECORDS_KEY: str = "hospital_erp_records"
    APPOINTMENTS_KEY: str = "hospital_erp_appointments"
    SESSION_USER_KEY: str = "hospital_erp_user"

    # Latency added by the async facade to every call
    SIMULATED_DELAY_MS: int = 500

    # p001, rec001, ...
    ID_PAD_WIDTH: int = 3

    # QR code service (decode uploads, render payloads)
    QR_READ_URL: str = "https://api.qrserver.com/v1/read-qr-code/"
    QR_CREATE_URL: str = "https://api.qrserver.com/v1/create-qr-code/"
    QR_TIMEOUT: int = 10
    QR_IMAGE_SIZE: int = 200
    QR_API_KEY: Optional[str] = None

    RECENT_ACTIVITY_LIMIT: int = 4

    class Config:
        env_file = ".env"
        env_prefix = "MEDIQR_"


settings = Settings()
