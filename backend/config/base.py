"""Base configuration shared by every environment."""
import os
from datetime import timedelta

class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_ENABLED = True

    # Session codes
    SESSION_CODE_LENGTH = 6
    SESSION_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
    SESSION_CODE_MAX_ATTEMPTS = 5

    # Registration
    HOC_ACCESS_CODE = os.environ.get('HOC_ACCESS_CODE') or 'ACCESS_GRANTED'
    DEPARTMENTS = [
        "Civil Engineering",
        "Mechanical Engineering",
        "Electrical & Electronics Engineering",
        "Computer Engineering",
        "Mechatronics Engineering",
        "Agricultural & Bio-Resources Engineering",
        "Chemical Engineering"
    ]
    LEVELS = ["100 Level", "200 Level", "300 Level", "400 Level", "500 Level"]

    # Signatures
    MAX_CONTENT_LENGTH = 4 * 1024 * 1024  # 4MB
    SIGNATURE_FOLDER = os.environ.get('SIGNATURE_FOLDER') or 'signatures'
    MAX_SIGNATURE_BYTES = 512 * 1024

    # Live updates
    SOCKETIO_ASYNC_MODE = 'threading'
    SOCKETIO_MESSAGE_QUEUE = None
    SOCKETIO_CORS_ORIGINS = '*'
    RECENT_SESSIONS_LIMIT = 5
    PORTAL_URL = os.environ.get('PORTAL_URL')

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
