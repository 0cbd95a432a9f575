from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./signquote.db"

    # Letterhead
    COMPANY_NAME: str = "Waytoogo Industries (Pvt) Ltd."
    COMPANY_ADDRESS: str = "A10, Commercial Centre\nBandarawela Uva Province 90100\nSriLanka"
    COMPANY_CONTACT: str = "0743724000"
    COMPANY_EMAIL: str = "waytoogoindustries@gmail.com"

    # Quote defaults
    SERIAL_PREFIX: str = "WTG"
    QUOTE_VALID_DAYS: int = 30
    DEFAULT_CLIENT_NAME: str = "Valued Customer"
    ARTWORK_COST_DEFAULT: float = 500.00

    # Key the price book is stored under in the settings table
    PRICE_BOOK_SETTING_KEY: str = "signQuotePricing"

    PDF_TEMPLATE_DEFAULT: str = "modern"  # 'modern' | 'corporate' | 'minimal'

    class Config:
        env_file = ".env"


settings = Settings()
