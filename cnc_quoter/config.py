import os

from pydantic_settings import BaseSettings


_DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


class Settings(BaseSettings):
    COMPANY_NAME: str = "Vase CNC Firma s.r.o."
    COMPANY_ADDRESS: str = "Prumyslova 123, 123 00 Praha"
    SETTLEMENT_CURRENCY: str = "CZK"

    # Material catalog: JSON array of {id, name, density, defaultPricePerKg}
    MATERIALS_PATH: str = os.path.join(_DATA_DIR, "materials.json")

    # Exchange rates (frankfurter.app needs no API key)
    EXCHANGE_RATE_API_URL: str = "https://api.frankfurter.app/latest"
    EXCHANGE_RATE_TIMEOUT: float = 10.0

    # Nesting
    SHEET_GAP_MM: float = 5.0

    # Quote template defaults (CZK)
    DEFAULT_MATERIAL_ID: str = "ALUMINUM_6061"
    MATERIAL_COST_PER_KG_DEFAULT: float = 250.0
    SETUP_RATE_DEFAULT: float = 1200.0
    POST_PROCESS_COST_DEFAULT: float = 100.0
    MARKUP_DEFAULT: float = 20.0
    MACHINING_RATE_DEFAULT: float = 1500.0
    MACHINING_MINUTES_DEFAULT: float = 15.0

    class Config:
        env_file = ".env"


settings = Settings()
