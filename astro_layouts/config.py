import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file (LAYOUTS_DATA_DIR etc.)
load_dotenv()

DATA_DIR = Path(os.getenv("LAYOUTS_DATA_DIR", "data"))
PRESETS_DIR = Path(os.getenv("LAYOUTS_PRESETS_DIR", "presets"))
LOG_LEVEL = os.getenv("LAYOUTS_LOG_LEVEL", "INFO").upper()
