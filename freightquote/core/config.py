"""
配置管理模块
Configuration Management Module

提供YAML配置加载、环境变量管理、配置验证等功能
"""

import os
import threading
from typing import Any, Dict, Optional
from functools import lru_cache

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from freightquote.core.config_models import ConfigModel
from freightquote.core.logger import get_logger
from freightquote.core.error_handler import ConfigError


class Config:
    """
    配置管理类

    负责加载和管理应用程序的配置，支持YAML配置文件和环境变量
    """

    _instance: Optional["Config"] = None
    _lock = threading.Lock()
    _config: Dict[str, Any] = {}
    _config_path: Optional[str] = None

    def __new__(cls, config_path: Optional[str] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if not hasattr(self, '_initialized') or not self._initialized:
            self.logger = get_logger()
            self._load_config(config_path)
            self._initialized = True
        elif config_path and config_path != self._config_path:
            self.reload(config_path)

    def _load_config(self, config_path: Optional[str] = None) -> None:
        """
        加载配置文件

        Args:
            config_path: 配置文件路径，不指定则使用默认路径
        """
        if config_path is None:
            config_path = self._find_config_file()

        self._config_path = config_path
        self._config = {}

        if config_path and os.path.exists(config_path):
            self._load_env_file()
            self._load_yaml_config(config_path)
        self._set_defaults()

    def _find_config_file(self) -> Optional[str]:
        """
        查找配置文件

        优先级: FQ_CONFIG > config/config.yaml > config/config.example.yaml
        """
        possible_paths = [
            os.getenv("FQ_CONFIG", ""),
            "config/config.yaml",
            "config/config.example.yaml",
        ]
        for path in possible_paths:
            if path and os.path.exists(path):
                return path
        return None

    def _load_yaml_config(self, config_path: str) -> None:
        """
        加载YAML配置文件，先替换环境变量引用再做模型校验
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            self.logger.warning(f"Config file not found: {config_path}")
            return
        except yaml.YAMLError as e:
            self.logger.error(f"Invalid YAML in config file: {e}")
            raise ConfigError(f"Invalid YAML: {e}")

        if not isinstance(config_data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")

        try:
            validated_config = ConfigModel.from_dict(self._resolve_dict(config_data))
        except ValidationError as e:
            self.logger.error(f"Config validation failed: {e}")
            raise ConfigError(f"Invalid configuration: {e}")

        self._config = validated_config.to_dict()
        self.logger.debug(f"Config validation passed: {config_path}")

    def _load_env_file(self) -> None:
        """
        加载.env环境变量文件
        """
        env_files = [
            ".env",
            "config/.env",
        ]
        for env_file in env_files:
            if os.path.exists(env_file):
                load_dotenv(env_file, override=True)
                break

    def _resolve_dict(self, obj: Any) -> Any:
        """
        递归解析配置中的 ${VAR_NAME} 环境变量引用
        """
        if isinstance(obj, dict):
            return {key: self._resolve_dict(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_dict(item) for item in obj]
        elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
            env_key = obj[2:-1]
            value = os.getenv(env_key)
            if value is None:
                self.logger.warning(f"Environment variable {env_key} not found, using placeholder")
                return obj
            return value
        return obj

    def _set_defaults(self) -> None:
        """
        补齐缺失的配置段落与字段
        """
        defaults = ConfigModel().to_dict()

        for section, values in defaults.items():
            if section not in self._config:
                self._config[section] = values
            elif isinstance(values, dict):
                for key, value in values.items():
                    if key not in self._config[section]:
                        self._config[section][key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置值

        Args:
            key: 配置键，支持点号分隔的路径，如 "fx.provider_url"
            default: 默认值

        Returns:
            配置值
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_section(self, section: str, default: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        获取配置段落

        Args:
            section: 段落名称
            default: 默认值

        Returns:
            配置段落字典
        """
        return self._config.get(section, default or {})

    @property
    def app(self) -> Dict[str, Any]:
        """应用配置"""
        return self.get_section("app")

    @property
    def fx(self) -> Dict[str, Any]:
        """汇率配置"""
        return self.get_section("fx")

    @property
    def pricing(self) -> Dict[str, Any]:
        """报价费率配置"""
        return self.get_section("pricing")

    @property
    def display(self) -> Dict[str, Any]:
        """展示配置"""
        return self.get_section("display")

    def reload(self, config_path: Optional[str] = None) -> None:
        """
        重新加载配置

        Args:
            config_path: 新的配置文件路径
        """
        self._load_config(config_path or self._config_path)


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> Config:
    """
    获取配置单例

    Args:
        config_path: 配置文件路径

    Returns:
        Config实例
    """
    return Config(config_path)
