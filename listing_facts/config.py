"""
Configuration management for the Listing Facts service.
Handles environment variables and application settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Marketplace the product documents are retrieved from
    MARKETPLACE_BASE_URL: str = os.getenv("MARKETPLACE_BASE_URL", "https://www.amazon.co.uk")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Request settings
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )
    ACCEPT_LANGUAGE: str = os.getenv("ACCEPT_LANGUAGE", "en-GB,en;q=0.8")

    # Listing page grouping: max vertical distance between related nodes
    PROXIMITY_THRESHOLD: float = float(os.getenv("PROXIMITY_THRESHOLD", "200"))

    @classmethod
    def product_url(cls, asin: str) -> str:
        """Build the product detail URL for an identifier."""
        return f"{cls.MARKETPLACE_BASE_URL.rstrip('/')}/dp/{asin}"


config = Config()
