"""
Application configuration and paths.
"""
import os
from pathlib import Path

# Application identity
APP_NAME = 'Listro Studio'
APP_VERSION = '0.1.0'

# Server configuration
SERVER_HOST = os.getenv('STUDIO_HOST', '127.0.0.1')
SERVER_PORT = int(os.getenv('STUDIO_PORT', '5112'))

# Data directory (database lives here unless DATABASE_URL is set)
DATA_DIR = Path(os.getenv('STUDIO_DATA_DIR', str(Path.home() / '.listro-studio')))

# Database configuration
DATABASE_PATH = DATA_DIR / 'studio.db'
DATABASE_URL = os.getenv('DATABASE_URL', f'sqlite+aiosqlite:///{DATABASE_PATH}')

# Primary generator (Anthropic Claude)
ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY')
PRIMARY_MODEL = os.getenv('STUDIO_PRIMARY_MODEL', 'claude-sonnet-4-20250514')
PRIMARY_MAX_TOKENS = 4000
PRIMARY_TEMPERATURE = 0.7

# Variant generator (Cohere)
COHERE_API_KEY = os.getenv('COHERE_API_KEY')
COHERE_API_URL = os.getenv('COHERE_API_URL', 'https://api.cohere.com/v1/generate')
VARIANT_MODEL = os.getenv('STUDIO_VARIANT_MODEL', 'command-r-plus')
VARIANT_MAX_TOKENS = 200
VARIANT_TEMPERATURE = 0.8
VARIANT_COUNT = 3

# Upstream request timeout (seconds), applied to both providers
PROVIDER_TIMEOUT_SECONDS = float(os.getenv('STUDIO_PROVIDER_TIMEOUT', '60'))

# Job processing
MAX_CONCURRENT_JOBS = int(os.getenv('STUDIO_MAX_CONCURRENT_JOBS', '5'))

# A processing job whose lease is not renewed within this window is reclaimed
JOB_LEASE_SECONDS = int(os.getenv('STUDIO_JOB_LEASE_SECONDS', '300'))

# Quota: jobs per user in the trailing 24 hours
DAILY_JOB_LIMIT = int(os.getenv('STUDIO_DAILY_JOB_LIMIT', '50'))

# Analytics: how many recent feedback rows feed the rating histogram
ANALYTICS_FEEDBACK_LIMIT = 10

# Input limits
MAX_PROMPT_LENGTH = 1000
MAX_PROMPTS_PER_JOB = 20


def ensure_directories():
    """Create required directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
