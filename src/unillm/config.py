import os

from dotenv import load_dotenv

# Load from .env if it exists (useful for local development)
load_dotenv()

LOGGING_LEVEL = os.getenv("LOGGING_LEVEL", "INFO").upper() or "INFO"

# Provider credentials are read from these env vars by unillm.factory
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"

OPENAI_API_URL = os.getenv(
    "OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"
)
ANTHROPIC_API_URL = os.getenv(
    "ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages"
)
ANTHROPIC_VERSION = "2023-06-01"

# Upper bound for a single HTTP round trip; a call context deadline can shorten it
REQUEST_TIMEOUT_S = float(os.getenv("UNILLM_TIMEOUT_S", "60"))

# --- Request defaults ---
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
