"""
Runtime configuration for the Lana assistant.
All settings come from the environment (.env is loaded when present).
"""
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Completion service (any OpenAI-compatible endpoint, Groq by default)
API_KEY = os.getenv("API_KEY")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.groq.com/openai/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

# Reference timezone for prompts and date rendering
TIMEZONE = os.getenv("TIMEZONE", "Europe/Moscow")

# Persistent store
DB_FILE = os.getenv("DB_FILE", "bot_db.json")

# Telegram Bot API
BOT_TOKEN = os.getenv("BOT_TOKEN")
WEBAPP_URL = os.getenv("WEBAPP_URL")
TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
TELEGRAM_WEBHOOK_SECRET = os.getenv("TELEGRAM_WEBHOOK_SECRET")
TELEGRAM_TIMEOUT_SECONDS = float(os.getenv("TELEGRAM_TIMEOUT_SECONDS", "8"))
TELEGRAM_MAX_RETRIES = int(os.getenv("TELEGRAM_MAX_RETRIES", "2"))
TELEGRAM_RETRY_BACKOFF = float(os.getenv("TELEGRAM_RETRY_BACKOFF", "0.5"))

# Update deduplication window
TURN_TTL_SECONDS = int(os.getenv("TURN_TTL_SECONDS", "60"))

# Server
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "3000"))
