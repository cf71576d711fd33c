#!/usr/bin/env python3
"""
配置管理模块

配置来源：代码中直接构造、.env/环境变量、JSON配置文件
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .models import RenderMode

logger = logging.getLogger(__name__)

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}
_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} 不是合法的布尔值: {value}")


@dataclass
class GatherConfig:
    """切片核心配置"""

    debug: bool = False                 # 日志不一致时抛出异常
    default_render_mode: str = "lines"  # 默认渲染模式：lines / exact
    mask_magics: bool = True            # 解析前屏蔽IPython魔法命令
    log_level: str = "INFO"

    @property
    def render_mode(self) -> RenderMode:
        return RenderMode.parse(self.default_render_mode)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'GatherConfig':
        """从.env文件和环境变量创建配置，已存在的环境变量优先"""
        load_dotenv(env_file or find_dotenv(usecwd=True), override=False)

        config = cls()
        if os.getenv('GATHER_DEBUG'):
            config.debug = _parse_bool('GATHER_DEBUG', os.getenv('GATHER_DEBUG'))
        if os.getenv('GATHER_RENDER_MODE'):
            config.default_render_mode = os.getenv('GATHER_RENDER_MODE')
        if os.getenv('GATHER_MASK_MAGICS'):
            config.mask_magics = _parse_bool('GATHER_MASK_MAGICS', os.getenv('GATHER_MASK_MAGICS'))
        if os.getenv('GATHER_LOG_LEVEL'):
            config.log_level = os.getenv('GATHER_LOG_LEVEL')

        config.validate()
        return config

    @classmethod
    def from_file(cls, config_path: str) -> 'GatherConfig':
        """从JSON配置文件创建配置"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"配置文件不存在: {config_path}")
        except json.JSONDecodeError as e:
            raise ValueError(f"配置文件格式错误: {e}")

        unknown = set(config_data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"配置文件包含未知配置项: {', '.join(sorted(unknown))}")

        config = cls(**config_data)
        config.validate()
        return config

    def to_file(self, config_path: str):
        """保存配置到文件"""
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)
        logger.info(f"配置已保存到: {config_path}")

    def validate(self):
        """验证配置，非法时抛出ValueError"""
        RenderMode.parse(self.default_render_mode)
        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"不支持的日志级别: {self.log_level}")
