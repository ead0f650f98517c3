"""
日志模块
Logging Module

提供统一的日志记录功能，支持多级别日志、文件输出、彩色控制台输出
"""

import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional
from loguru import logger


class Logger:
    """
    日志管理类

    封装loguru，控制台输出 + 按大小轮转的文件输出
    """

    _instance: Optional["Logger"] = None
    _lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not hasattr(self, '_initialized') or not self._initialized:
            self._setup_logger()
            self._initialized = True

    def _setup_logger(self) -> None:
        """
        设置日志输出

        FQ_LOG_LEVEL 控制控制台级别，FQ_LOGS_DIR 为空时不写文件
        """
        log_level = os.getenv("FQ_LOG_LEVEL", "INFO").upper()
        logs_dir = os.getenv("FQ_LOGS_DIR", "logs")
        debug = os.getenv("FQ_DEBUG", "false").lower() == "true"

        logger.remove()

        console_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{message}</cyan>"
        )

        file_format = (
            "{time:YYYY-MM-DD HH:mm:ss} | "
            "{level: <8} | "
            "{message}"
        )

        logger.add(
            sys.stderr,
            format=console_format,
            level="DEBUG" if debug else log_level,
            colorize=True,
        )

        if not logs_dir:
            return

        logs_path = Path(logs_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        logger.add(
            str(logs_path / f"freightquote_{timestamp}.log"),
            format=file_format,
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
        )

    def info(self, message: str, **kwargs) -> None:
        logger.info(message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        logger.debug(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        logger.error(message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """
        Error级别日志，附带当前异常堆栈
        """
        logger.exception(message, **kwargs)


def get_logger(*_args, **_kwargs) -> Logger:
    """
    获取日志单例

    Returns:
        Logger实例
    """
    return Logger()
