import os
from dotenv import load_dotenv
load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///assessment.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # evaluator (OpenAI Responses API)
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_MAX_ATTEMPTS = int(os.getenv("OPENAI_MAX_ATTEMPTS", "6"))
    OPENAI_TIMEOUT_SEC = float(os.getenv("OPENAI_TIMEOUT_SEC", "30"))

    # scoring policy
    FOLLOW_UP_PENALTY_PERCENT = float(os.getenv("FOLLOW_UP_PENALTY_PERCENT", "10"))
    STRENGTH_THRESHOLD = float(os.getenv("STRENGTH_THRESHOLD", "5.0"))
    EVALUATOR_MAX_WORKERS = int(os.getenv("EVALUATOR_MAX_WORKERS", "4"))
    EVALUATION_TIMEOUT_SEC = float(os.getenv("EVALUATION_TIMEOUT_SEC", "120"))
