from pydantic_settings import BaseSettings
from pydantic import Field
from decimal import Decimal
from typing import Optional

class Settings(BaseSettings):
    # Database
    db_user: str = Field(default="postgres", alias='DB_USER')
    db_host: str = Field(default="localhost", alias='DB_HOST')
    db_password: str = Field(default="", alias='DB_PASSWORD')
    db_port: int = Field(default=5432, alias='DB_PORT')
    db_name: str = Field(default="party_bookings", alias='DB_NAME')

    # JWT Security
    jwt_secret: str = Field(alias='JWT_SECRET')
    jwt_expiry_days: int = Field(default=7, alias='JWT_EXPIRY_DAYS')

    # Twilio (SMS OTP delivery)
    twilio_account_sid: Optional[str] = Field(default=None, alias='TWILIO_ACCOUNT_SID')
    twilio_auth_token: Optional[str] = Field(default=None, alias='TWILIO_AUTH_TOKEN')
    twilio_phone_number: Optional[str] = Field(default=None, alias='TWILIO_PHONE_NUMBER')

    # OTP
    otp_country_code: str = Field(default="+91", alias='OTP_COUNTRY_CODE')
    otp_validity_minutes: int = Field(default=5, alias='OTP_VALIDITY_MINUTES')
    otp_max_attempts: int = Field(default=5, alias='OTP_MAX_ATTEMPTS')

    # Razorpay payment gateway
    razorpay_key_id: Optional[str] = Field(default=None, alias='RAZORPAY_KEY_ID')
    razorpay_key_secret: Optional[str] = Field(default=None, alias='RAZORPAY_KEY_SECRET')
    payment_currency: str = Field(default="INR", alias='PAYMENT_CURRENCY')
    merchant_name: str = Field(default="Party in Bangalore", alias='MERCHANT_NAME')

    # Bookings
    platform_fee: Decimal = Field(default=Decimal("0"), alias='PLATFORM_FEE')
    catalog_ttl_seconds: int = Field(default=60, alias='CATALOG_TTL_SECONDS')

    # Cloudflare R2 - S3-compatible storage
    r2_access_key_id: Optional[str] = Field(default=None, alias='R2_ACCESS_KEY_ID')
    r2_secret_access_key: Optional[str] = Field(default=None, alias='R2_SECRET_ACCESS_KEY')
    r2_endpoint: Optional[str] = Field(default=None, alias='R2_ENDPOINT')
    r2_bucket: str = Field(default='party-assets', alias='R2_BUCKET')
    r2_public_url: Optional[str] = Field(default=None, alias='R2_PUBLIC_URL')

    # App settings
    app_env: str = Field(default="development", alias='APP_ENV')

    # Server
    port: int = Field(default=3000, alias='PORT')
    host: str = Field(default="0.0.0.0", alias='HOST')
    debug: bool = Field(default=False, alias='DEBUG')

    # CORS configuration
    cors_origins: str = Field(default="*", alias='CORS_ORIGINS')

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def db_connection_params(self) -> dict:
        return {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password,
            "database": self.db_name,
        }

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

settings = Settings()
