import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# ======================
#   ТОКЕНИ
# ======================
BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN") or os.getenv("BOT_TOKEN")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")

# ======================
#   LLM (OpenAI-сумісний Groq)
# ======================
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.groq.com/openai/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "2000"))

# ======================
#   ДАНІ
# ======================
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
CARDS_PATH = Path(os.getenv("CARDS_PATH", DATA_DIR / "cards.json"))
SPREADS_PATH = Path(os.getenv("SPREADS_PATH", DATA_DIR / "spreads.json"))
HISTORY_DIR = Path(os.getenv("HISTORY_DIR", DATA_DIR / "history"))

HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "10"))
SESSION_TTL = int(os.getenv("SESSION_TTL", str(60 * 60)))
SESSION_SWEEP_INTERVAL = int(os.getenv("SESSION_SWEEP_INTERVAL", str(30 * 60)))

# ======================
#   ПРОЦЕС
# ======================
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Емодзі інтерфейсу
EMOJI = {
    "cards": "🃏",
    "spread": "🔮",
    "info": "ℹ️",
    "back": "⬅️",
    "next": "➡️",
    "major": "✨",
    "minor": "🎴",
    "ai": "🤖",
    "question": "❓",
}
