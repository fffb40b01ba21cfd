"""Development configuration."""
import os
from .base import Config

class DevelopmentConfig(Config):
    """Development configuration class."""
    DEBUG = True
    TESTING = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or 'sqlite:///eduattend_dev.db'
    SQLALCHEMY_ECHO = False

    # Logging
    LOG_LEVEL = 'DEBUG'
