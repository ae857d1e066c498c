import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./discgolf.db")

# No default: without a secret every token is refused
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Object storage (Cloudflare R2, S3 compatible)
R2_BUCKET = os.getenv("R2_BUCKET")
CLOUDFLARE_ACCOUNT_ID = os.getenv("CLOUDFLARE_ACCOUNT_ID")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")

ADMIN_CACHE_TTL_SECONDS = int(os.getenv("ADMIN_CACHE_TTL_SECONDS", 60))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
