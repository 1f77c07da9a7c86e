import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
    GEMINI_API_URL = os.getenv("GEMINI_API_URL", "")
    GEMINI_TIMEOUT_MS = int(os.getenv("GEMINI_TIMEOUT_MS", "15000"))
    GEMINI_RETRIES = int(os.getenv("GEMINI_RETRIES", "1"))
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
    SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")
    ENV = os.getenv("ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    RATE_LIMIT = os.getenv("RATE_LIMIT", "30/minute")

    VERSION_MANIFEST = {
        "api": "1.2.0",
        "risk_engine": "v1-90d-window",
        "symptom_engine": "v1-line-scan",
        "build_id": os.getenv("BUILD_ID", "DEV-LOCAL")
    }

settings = Config()
