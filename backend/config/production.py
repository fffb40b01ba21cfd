"""Production configuration."""
import os
from datetime import timedelta
from .base import Config

class ProductionConfig(Config):
    """Production configuration class."""
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY')  # Must be set in production

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)

    # Rate Limiting (Redis required in production)
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL')

    # Socket.IO fan-out across workers
    SOCKETIO_MESSAGE_QUEUE = os.getenv('REDIS_URL')
    SOCKETIO_CORS_ORIGINS = [origin for origin in os.getenv('CORS_ORIGINS', '').split(',') if origin]

    # CORS
    CORS_ORIGINS = [origin for origin in os.getenv('CORS_ORIGINS', '').split(',') if origin]

    # Enhanced security
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Signatures
    SIGNATURE_FOLDER = os.getenv('SIGNATURE_FOLDER') or '/app/signatures'

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = '/app/logs/app.log'
