import logging

from souvenir.config import LOGGER_NAME


class Logged:
    def __init__(self, log_tag: str | None = None, logger_name: str | None = None):
        self.__logger: logging.Logger = logging.getLogger(
            logger_name if logger_name else f'{LOGGER_NAME}.{self.__class__.__qualname__}'
        )
        self.__log_prefix: str = f'[{log_tag}] ' if log_tag else ''
        self.__log_tag = log_tag

    @property
    def logger(self) -> logging.Logger:
        return self.__logger

    @property
    def log_tag(self) -> str | None:
        return self.__log_tag

    @log_tag.setter
    def log_tag(self, value: str | None):
        self.__log_tag = value
        self.__log_prefix = f'[{value}] ' if value else ''

    def __log(self, level: int, msg: object, *args, exc_info=None, **kwargs):
        if not self.__logger.isEnabledFor(level):
            return
        self.__logger.log(level, f'{self.__log_prefix}{msg}'.replace('\n', '\\n'), *args, exc_info=exc_info, **kwargs)

    def debug(self, msg: object, *args, exc_info=None, **kwargs):
        self.__log(logging.DEBUG, msg, *args, exc_info=exc_info, **kwargs)

    def warning(self, msg: object, *args, exc_info=None, **kwargs):
        self.__log(logging.WARNING, msg, *args, exc_info=exc_info, **kwargs)

