"""
统一异常处理模块
Unified Error Handling

报价核心的异常层级与执行耗时装饰器
"""

import asyncio
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

from freightquote.core.logger import get_logger


class FreightQuoteError(Exception):
    """基础异常类"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigError(FreightQuoteError):
    """配置错误"""
    pass


class ValidationError(FreightQuoteError):
    """
    货件参数校验失败

    field 为违反约束的字段名（对外 camelCase），constraint 描述约束本身
    """

    def __init__(self, field: str, constraint: str):
        self.field = field
        self.constraint = constraint
        super().__init__(
            f"{field}: {constraint}",
            details={"field": field, "constraint": constraint},
        )


class ProviderUnavailable(FreightQuoteError):
    """汇率源不可用且没有可用的缓存兜底"""

    def __init__(self, base: str, reason: str):
        self.base = base
        super().__init__(
            f"FX provider unavailable for base {base}: {reason}",
            details={"base": base, "reason": reason},
        )


class UnsupportedCurrency(FreightQuoteError):
    """汇率表拉取成功，但不含目标币种"""

    def __init__(self, base: str, target: str):
        self.base = base
        self.target = target
        super().__init__(
            f"No {base}->{target} rate in the fetched table",
            details={"base": base, "target": target},
        )


def log_execution_time(logger=None, label: Optional[str] = None):
    """
    记录执行时间装饰器

    Args:
        logger: 日志记录器，不指定则使用全局logger
        label: 日志中显示的名称，默认函数名
    """
    def decorator(func: Callable) -> Callable:
        name = label or func.__name__

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            log = logger or get_logger()
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                log.warning(f"{name} failed after {elapsed:.2f}s: {e}")
                raise
            elapsed = time.perf_counter() - start_time
            log.debug(f"{name} executed in {elapsed:.2f}s")
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            log = logger or get_logger()
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                log.warning(f"{name} failed after {elapsed:.2f}s: {e}")
                raise
            elapsed = time.perf_counter() - start_time
            log.debug(f"{name} executed in {elapsed:.2f}s")
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper
    return decorator
