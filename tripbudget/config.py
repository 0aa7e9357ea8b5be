import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or the project root
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_ACCESS_TOKEN_EXPIRES', 24)))

    MONGO_URI = os.getenv('MONGO_URI', 'mongodb://localhost:27017/tripbudget')
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'tripbudget')
    # Unique indexes back the one-budget-per-trip and participant-name conflicts
    MONGO_ENSURE_INDEXES = os.getenv('MONGO_ENSURE_INDEXES', 'true').lower() == 'true'

    CORS_ORIGINS = [
        o.strip() for o in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if o.strip()
    ]

    DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'USD')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    MONGO_URI = 'mongodb://localhost:27017/tripbudget_test'
    MONGO_DB_NAME = 'tripbudget_test'
    MONGO_ENSURE_INDEXES = False
    LOG_LEVEL = 'DEBUG'
