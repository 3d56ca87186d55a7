"""Configuration for the voting demo UI."""
import os
from dotenv import load_dotenv

load_dotenv()

# API Configuration
TALLY_API_URL = os.getenv('TALLY_API_URL', 'http://localhost:8080')
API_VERSION = os.getenv('API_VERSION', 'v1')

# Flask Configuration
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
PORT = int(os.getenv('PORT', '3000'))

# Timeouts for calls to the tally API (seconds)
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '10'))
HEALTH_TIMEOUT = float(os.getenv('HEALTH_TIMEOUT', '2'))
