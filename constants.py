import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Quiet period before a burst of codeChange events is flushed as one codeUpdate
CODE_DEBOUNCE_MS = int(os.getenv("CODE_DEBOUNCE_MS", 100))
CODE_DEBOUNCE_SECONDS = CODE_DEBOUNCE_MS / 1000.0

MAX_MESSAGE_BYTES = int(os.getenv("MAX_MESSAGE_BYTES", 1_000_000))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

FRONTEND_DIST = os.getenv("FRONTEND_DIST", os.path.join(os.getcwd(), "frontend", "dist"))

# Events queued for a client that isn't reading; past this, new events for it are dropped
OUTBOX_MAX_MESSAGES = int(os.getenv("OUTBOX_MAX_MESSAGES", 1000))
