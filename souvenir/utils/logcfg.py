import gzip
import logging
import logging.config
import os
import shutil
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Any

from souvenir import config


class InfoFilter(logging.Filter):
    def filter(self, rec):
        return rec.levelno <= logging.INFO


class ErrorFilter(logging.Filter):
    def filter(self, rec):
        return rec.levelno >= logging.WARNING


class CompressingRotatingFileHandler(RotatingFileHandler):
    """Rotates by size, gzipping the old file under a timestamped name instead of numbering it."""

    def rotated_path(self) -> Path:
        path = Path(self.baseFilename)
        stem = f'{path.stem}-{time.strftime("%Y%m%d-%H%M%S")}'
        candidate = path.with_name(f'{stem}{path.suffix}.gz')
        index = 1
        # several rollovers within one second
        while candidate.exists():
            candidate = path.with_name(f'{stem}.{index}{path.suffix}.gz')
            index += 1
        return candidate

    def doRollover(self):
        if self.stream:
            self.stream.close()
            # noinspection PyTypeChecker
            self.stream = None

        compressed_path = self.rotated_path()
        try:
            with open(self.baseFilename, 'rb') as f_in, gzip.open(compressed_path, 'wb', compresslevel=9) as f_out:
                shutil.copyfileobj(f_in, f_out)
            os.remove(self.baseFilename)
        except OSError as e:
            logging.getLogger(config.LOGGER_NAME).warning(f'Could not compress {compressed_path}: {e}')

        if not self.delay:
            self.stream = self._open()


class LogType:
    @staticmethod
    def console_only():
        return {"handlers": ["stdout", "stderr"], "level": "INFO"}

    @staticmethod
    def with_files():
        return {"handlers": ["stdout", "stderr", "file", "err_file"], "level": "INFO"}


def _file_handler(filename: Path, max_bytes: int, **extra) -> Dict[str, Any]:
    return {
        '()': CompressingRotatingFileHandler,
        'maxBytes': max_bytes,
        'level': 'DEBUG',
        'formatter': 'default',
        'filename': str(filename),
        'encoding': 'utf-8',
        **extra,
    }


def build_config(log_to_file: bool = False,
                 logs_dir: Path | None = None,
                 max_bytes: int = 2_560_000) -> Dict[str, Any]:
    """
    Build a ``logging.config.dictConfig`` mapping.

    Records up to INFO go to stdout, WARNING and above go to stderr. With ``log_to_file``
    the same split is mirrored into ``app.log`` / ``err.log`` inside ``logs_dir``.
    """
    handlers: Dict[str, Any] = {
        "stdout": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "stream": "ext://sys.stdout",
            "filters": ["info"],
        },
        "stderr": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "stream": "ext://sys.stderr",
            "filters": ["error"],
        },
    }
    if log_to_file:
        logs_dir = Path(logs_dir if logs_dir is not None else config.LOGS_DIR)
        handlers['file'] = _file_handler(logs_dir / 'app.log', max_bytes)
        handlers['err_file'] = _file_handler(logs_dir / 'err.log', max_bytes, filters=["error"])

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s [%(threadName)s]",
            },
        },
        "filters": {
            "info": {
                "()": InfoFilter,
            },
            "error": {
                "()": ErrorFilter,
            },
        },
        "handlers": handlers,
        "root": LogType.with_files() if log_to_file else LogType.console_only(),
        "loggers": {
            config.LOGGER_NAME: {"level": "DEBUG" if config.LOG_LEVEL >= 1 else "INFO"},
        },
    }


def apply(log_to_file: bool = False, logs_dir: Path | None = None, max_bytes: int = 2_560_000) -> Dict[str, Any]:
    logging_config = build_config(log_to_file, logs_dir, max_bytes)
    if log_to_file:
        Path(logging_config['handlers']['file']['filename']).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(logging_config)
    return logging_config
