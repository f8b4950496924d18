import os
from pathlib import Path

LOGS_DIR = Path(os.getenv('SOUVENIR_LOGS_DIR', Path.cwd() / 'log'))
LOG_LEVEL = int(os.getenv('SOUVENIR_LOG_LEVEL', 0))

LOGGER_NAME = 'souvenir'
