"""
货运报价核心
Freight Quote Core

海运报价计算、汇率缓存与展示币种换算
"""

__version__ = "1.0.0"
__author__ = "Project Team"

from .core.config import Config
from .core.logger import Logger

__all__ = [
    "Config",
    "Logger",
    "__version__",
]
