import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or its parent
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    MONGO_URI = os.getenv('MONGO_URI', 'mongodb://localhost:27017/settleup')
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'settleup')
    # Needs a replica set; reads the whole group log at one point in time
    MONGO_SNAPSHOT_READS = _env_flag('MONGO_SNAPSHOT_READS')

    CORS_ORIGINS = [
        o.strip() for o in
        os.getenv('CORS_ORIGINS', 'http://localhost:5173,http://localhost:8080').split(',')
        if o.strip()
    ]
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    LOG_LEVEL = 'DEBUG'
