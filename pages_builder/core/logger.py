"""
Logger with debug & info with file logging
"""
import logging
import os
from datetime import datetime, timezone, timedelta
from pathlib import Path

# Log directory, overridable so read-only deployments can point it elsewhere
LOG_DIR = Path(os.getenv("LOG_DIR", Path(__file__).resolve().parent.parent.parent / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Timezone IST
IST_OFFSET = timedelta(hours=5, minutes=30)
logging.Formatter.converter = lambda *args: (datetime.now(timezone(IST_OFFSET))).timetuple()
formatter = logging.Formatter("%(asctime)s [%(levelname)s]: %(message)s ")


logger = logging.getLogger("pages_builder")
logger.setLevel(logging.DEBUG)

if not logger.handlers:
    debug_handler = logging.FileHandler(LOG_DIR / "debug.log", encoding="utf-8")
    debug_handler.setLevel(logging.DEBUG)
    debug_handler.setFormatter(formatter)

    info_handler = logging.FileHandler(LOG_DIR / "info.log", encoding="utf-8")
    info_handler.setLevel(logging.INFO)
    info_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    logger.addHandler(debug_handler)
    logger.addHandler(info_handler)
    logger.addHandler(console_handler)
