import os
from dotenv import load_dotenv

load_dotenv()

# Database Configuration (unset -> in-memory store)
PG_DSN = os.getenv("DATABASE_URL")

# Redis Configuration (unset -> no rate limiting)
REDIS_URL = os.getenv("REDIS_URL")

# Response generator
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.3"))
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))  # seconds

# Request caps, per minute (0 disables)
SEND_LIMIT_PER_MINUTE = int(os.getenv("SEND_LIMIT_PER_MINUTE", "20"))
QUICK_ACTION_LIMIT_PER_MINUTE = int(os.getenv("QUICK_ACTION_LIMIT_PER_MINUTE", "30"))

# Conversations and messages
ANONYMOUS_USER_ID = "anonymous"
DEFAULT_CONVERSATION_TITLE = "New Conversation"
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))

# App Configuration
BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
