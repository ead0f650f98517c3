"""
配置模型与验证
Configuration Models and Validation

使用Pydantic进行配置验证
"""

from typing import Dict, Optional, Any
from pydantic import BaseModel, Field, validator
from enum import Enum


class RateStoreType(str, Enum):
    """汇率表存储后端"""
    MEMORY = "memory"
    SQLITE = "sqlite"


class AppConfig(BaseModel):
    """应用配置模型"""
    name: str = Field(default="freightquote", description="应用名称")
    version: str = Field(default="1.0.0", description="版本号")
    debug: bool = Field(default=False, description="调试模式")
    log_level: str = Field(default="INFO", description="日志级别")
    data_dir: str = Field(default="data", description="数据目录")
    logs_dir: str = Field(default="logs", description="日志目录")

    @validator("log_level")
    def validate_log_level(cls, v):
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {v}")
        return v


class FxConfig(BaseModel):
    """汇率源与汇率缓存配置模型"""
    provider_url: str = Field(default="https://api.exchangerate.host", description="汇率API根地址")
    api_key_env: str = Field(default="", description="API密钥所在的环境变量名")
    timeout_seconds: float = Field(default=5.0, gt=0, le=60, description="汇率请求超时时间（秒）")
    freshness_hours: float = Field(default=24.0, gt=0, le=24 * 30, description="汇率表有效期（小时）")
    best_effort: bool = Field(default=False, description="刷新失败时是否允许回退到过期汇率")
    allow_unknown_default: bool = Field(default=False, description="目标币种缺失时是否按1.0换算")
    store: RateStoreType = Field(default=RateStoreType.MEMORY, description="汇率表存储后端")
    store_path: str = Field(default="data/fx_rates.db", description="SQLite存储路径")


class PricingConfig(BaseModel):
    """报价费率配置模型"""
    computation_currency: str = Field(default="USD", min_length=3, max_length=3, description="计价币种")
    container_rates: Dict[str, float] = Field(default_factory=dict, description="整箱单箱运费覆盖")
    overrides: Dict[str, float] = Field(default_factory=dict, description="其余费率常量覆盖")

    @validator("computation_currency")
    def validate_currency(cls, v):
        """计价币种统一大写"""
        return v.upper()

    @validator("container_rates", "overrides")
    def validate_non_negative(cls, v):
        """费率不能为负"""
        for key, value in v.items():
            if value < 0:
                raise ValueError(f"{key} must be non-negative, got {value}")
        return v


class DisplayConfig(BaseModel):
    """展示配置模型"""
    locale: str = Field(default="en_US", description="默认区域设置")
    currency: Optional[str] = Field(default=None, description="默认展示币种，为空时沿用计价币种")


class ConfigModel(BaseModel):
    """完整配置模型"""
    app: AppConfig = Field(default_factory=AppConfig)
    fx: FxConfig = Field(default_factory=FxConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigModel':
        """从字典创建配置"""
        return cls(**data)
