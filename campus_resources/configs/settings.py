from pydantic import ConfigDict
from pydantic_settings import BaseSettings

"""
Loaded automatically from the `.env` file or the process environment.
    - Database URL for the document store tables.
    - Token verification parameters for the identity provider.
    - Cloudinary account used as the binary store.
    - Catalog defaults (page size, designated admin email).
"""
class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./campus_resources.db"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Only this address may hold the admin role; empty disables the check
    ADMIN_EMAIL: str = ""

    CLOUDINARY_API_BASE: str = "https://api.cloudinary.com/v1_1"
    CLOUDINARY_CLOUD_NAME: str = "demo"
    CLOUDINARY_UPLOAD_PRESET: str = "campus_unsigned"

    DEFAULT_PAGE_SIZE: int = 10
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
