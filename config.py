"""
Nitya Proxy - Configuration
Feature flags, paths, and constants
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# =============================================================================
# PATHS
# =============================================================================
PROJECT_ROOT = Path(__file__).parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
PROSPECTS_DIR = Path(os.getenv("PROSPECTS_DIR", str(DATA_DIR / "prospects")))
BRAIN_MODULES_DIR = Path(os.getenv("BRAIN_MODULES_DIR", str(DATA_DIR / "brain_modules")))
LOGS_DIR = PROJECT_ROOT / "logs"
DIAGNOSTIC_LOG_PATH = LOGS_DIR / "diagnostic.log"

# =============================================================================
# VERSION
# =============================================================================
VERSION = "0.1.0"
PROJECT_NAME = "Nitya Proxy"

# Persona named in the system prompt header
ASSISTANT_NAME = os.getenv("ASSISTANT_NAME", "Nitya")
ASSISTANT_ROLE = os.getenv("ASSISTANT_ROLE", "StarterNode's Lead Design Consultant")

# =============================================================================
# LLM CONFIGURATION
# =============================================================================
# Anthropic (Claude)
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")
ANTHROPIC_MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "4096"))
ANTHROPIC_TEMPERATURE = float(os.getenv("ANTHROPIC_TEMPERATURE", "1.0"))
ANTHROPIC_TIMEOUT = float(os.getenv("ANTHROPIC_TIMEOUT", "120"))
ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL") or None

# =============================================================================
# TOOL USE LOOP
# =============================================================================
# Hard cap on completion calls per chat request. When the last allowed call
# still asks for tools, that response is returned as-is with a warning.
TOOL_USE_MAX_ITERATIONS = int(os.getenv("TOOL_USE_MAX_ITERATIONS", "5"))

# Worker threads for one turn's tool calls (1 = run sequentially)
TOOL_BATCH_MAX_WORKERS = int(os.getenv("TOOL_BATCH_MAX_WORKERS", "4"))

# =============================================================================
# PROSPECTS
# =============================================================================
DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "test_user_001")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico")
STYLES_PREVIEW_CHARS = 500
UPLOAD_MAX_BYTES = 10 * 1024 * 1024  # 10MB

# Brain modules loaded into the personality section, in prompt order
BRAIN_MODULES = (
    ("YOUR PERSONALITY (WHO YOU ARE)", "personality.json"),
    ("YOUR SALES TRAINING (HOW YOU SELL)", "sales.json"),
    ("SERVICE YOU'RE SELLING (WHAT TO ASK)", "web_landing.json"),
    ("PRICING INFORMATION (WHEN TO PRESENT)", "pricing.json"),
)

# =============================================================================
# CONCURRENCY
# =============================================================================
# Serialize chat runs and data writes per prospect folder
CHAT_SERIALIZE_PER_PROSPECT = os.getenv("CHAT_SERIALIZE_PER_PROSPECT", "true").lower() == "true"
PROSPECT_LOCK_TIMEOUT = float(os.getenv("PROSPECT_LOCK_TIMEOUT", "300"))

# =============================================================================
# HTTP API
# =============================================================================
HTTP_HOST = os.getenv("HTTP_HOST", "127.0.0.1")
HTTP_PORT = int(os.getenv("HTTP_PORT", "3000"))
# Include exception details in 500 responses (development only)
HTTP_DEBUG = os.getenv("HTTP_DEBUG", "false").lower() == "true"

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"
