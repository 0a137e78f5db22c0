"""
@PURPOSE: 应用配置管理，使用Pydantic Settings管理配置，支持多环境和从YAML加载
@OUTLINE:
  - class LoggingConfig: 日志配置
  - class BrowserConfig: 浏览器配置
  - class MarketplaceConfig: Vinted 站点配置(URL、页面标识、下游信号)
  - class TimingConfig: 等待与重试配置
  - class PhotoConfig: 图片上传配置
  - class PublishConfig: 发布前置校验与默认策略
  - class Settings: 应用配置主类
  - def load_environment_config(): 加载环境配置
  - def create_settings(): 创建配置实例
  - def load_env_overrides(): 读取环境变量覆盖项
@GOTCHAS:
  - 账号密码应存储在.env文件中, 不要提交到git
  - 环境配置文件优先级: 环境变量 > YAML > 默认值
  - YAML 文件内容只有一个字符串时视为别名(例如 staging.yaml -> production)
@DEPENDENCIES:
  - 外部: pydantic, pydantic_settings, pyyaml
@RELATED: __init__.py, environments/*.yaml
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    EnvSettingsSource,
    SettingsConfigDict,
)

# ========== 子配置类 ==========


class LoggingConfig(BaseSettings):
    """日志配置.

    Attributes:
        level: 日志级别
        format: 日志格式(detailed/json/simple)
        output: 输出目标列表
        file_path: 文件路径
        rotation: 轮转大小
        retention: 保留时间
    """

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(default="detailed", description="日志格式")
    output: list[str] = Field(default=["console", "file"], description="输出目标")
    file_path: str = Field(default="data/logs/vinted_publish.log", description="文件路径")
    rotation: str = Field(default="10 MB", description="轮转大小")
    retention: str = Field(default="7 days", description="保留时间")


class BrowserConfig(BaseSettings):
    """浏览器配置.

    Attributes:
        headless: 无头模式
        slow_mo: 慢速模式（毫秒）
        timeout: 默认超时（毫秒）
        viewport: 视口大小
        locale: 语言区域
        timezone_id: 时区
        user_agent: 默认用户代理(会话未提供时使用)
        extra_args: 追加的启动参数
    """

    headless: bool = Field(default=True, description="无头模式")
    slow_mo: int = Field(default=0, ge=0, description="慢速模式（毫秒）")
    timeout: int = Field(default=30000, ge=1000, description="默认超时（毫秒）")
    viewport: dict[str, int] = Field(
        default={"width": 1920, "height": 1080},
        description="视口大小",
    )
    locale: str = Field(default="de-DE", description="语言区域")
    timezone_id: str = Field(default="Europe/Berlin", description="时区")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="默认用户代理",
    )
    extra_args: list[str] = Field(default_factory=list, description="追加启动参数")


class MarketplaceConfig(BaseSettings):
    """Vinted 站点配置.

    Attributes:
        base_url: 站点根地址
        new_item_path: 发布页路径, 同时作为页面标识令牌
        brand_signal_fragment: 选中类目后品牌接口的 URL 片段(下游信号)
        login_path_fragment: 登录页 URL 片段
        success_url_patterns: 提交成功后的 URL 正则
    """

    base_url: str = Field(default="https://www.vinted.de", description="站点根地址")
    new_item_path: str = Field(default="/items/new", description="发布页路径")
    brand_signal_fragment: str = Field(
        default="/item_upload/brands?category_id=",
        description="品牌接口 URL 片段",
    )
    login_path_fragment: str = Field(default="/member/login", description="登录页 URL 片段")
    success_url_patterns: list[str] = Field(
        default=[r"/items/\d+", r"/catalog", r"/member/\d+"],
        description="提交成功后的 URL 正则",
    )

    @property
    def new_item_url(self) -> str:
        """发布页完整 URL."""
        return f"{self.base_url.rstrip('/')}{self.new_item_path}"

    def is_new_item_url(self, url: str) -> bool:
        """URL 路径是否就是发布页(忽略查询串与末尾斜杠, 不做子串匹配)."""
        return urlparse(url).path.rstrip("/") == self.new_item_path.rstrip("/")


class TimingConfig(BaseSettings):
    """等待与重试配置.

    Attributes:
        locator_attempts: 单个定位策略的最大尝试次数
        locator_retry_delay_ms: 策略重试间隔(毫秒)
        action_timeout_ms: 点击/填写/注入文件的单次操作超时(毫秒)
        brand_signal_timeout_ms: 品牌接口信号等待超时(毫秒)
        field_confirm_timeout_ms: 下游字段出现的二次确认超时(毫秒)
        submit_timeout_ms: 提交后 URL 变化等待超时(毫秒)
        photo_settle_timeout_ms: 单张图片上传确认等待(毫秒)
        publish_timeout_s: 单次发布总超时(秒)
        typing_delay_min_ms: 逐字输入时按键间隔下限(毫秒)
        typing_delay_max_ms: 逐字输入时按键间隔上限(毫秒)
        typing_max_chars: 超过该长度的文本直接填写, 不逐字输入
    """

    locator_attempts: int = Field(default=3, ge=1, le=10, description="策略最大尝试次数")
    locator_retry_delay_ms: int = Field(default=400, ge=0, description="策略重试间隔")
    action_timeout_ms: int = Field(default=5000, ge=100, description="单次操作超时")
    brand_signal_timeout_ms: int = Field(default=5000, ge=0, description="品牌接口等待超时")
    field_confirm_timeout_ms: int = Field(default=3000, ge=0, description="下游字段确认超时")
    submit_timeout_ms: int = Field(default=20000, ge=0, description="提交后等待超时")
    photo_settle_timeout_ms: int = Field(default=4000, ge=0, description="图片上传确认等待")
    publish_timeout_s: float = Field(default=180.0, gt=0, description="单次发布总超时")
    typing_delay_min_ms: int = Field(default=50, ge=0, description="按键间隔下限")
    typing_delay_max_ms: int = Field(default=150, ge=0, description="按键间隔上限")
    typing_max_chars: int = Field(default=300, ge=0, description="逐字输入的最大长度")

    @model_validator(mode="after")
    def check_typing_delay(self) -> TimingConfig:
        if self.typing_delay_max_ms < self.typing_delay_min_ms:
            raise ValueError("typing_delay_max_ms 不能小于 typing_delay_min_ms")
        return self


class PhotoConfig(BaseSettings):
    """图片上传配置.

    Attributes:
        max_photos: 单个商品最多上传图片数(Vinted 限制)
        download_timeout_s: 单张图片下载超时(秒)
        default_extension: 无法识别扩展名时的默认值
        scratch_dir: 临时目录根路径, 为空则使用系统临时目录
        chunk_size: 流式下载块大小(字节)
    """

    max_photos: int = Field(default=20, ge=1, le=20, description="最多上传图片数")
    download_timeout_s: float = Field(default=30.0, gt=0, description="下载超时")
    default_extension: str = Field(default=".jpg", description="默认扩展名")
    scratch_dir: str | None = Field(default=None, description="临时目录根路径")
    chunk_size: int = Field(default=64 * 1024, ge=1024, description="下载块大小")


class PublishConfig(BaseSettings):
    """发布前置校验与默认策略.

    Attributes:
        min_title_length: 标题最小长度
        min_description_length: 描述最小长度
        default_branch: 未提供性别时兜底类目的主分支
        snapshot_on_failure: 失败时是否截图
    """

    min_title_length: int = Field(default=5, ge=1, description="标题最小长度")
    min_description_length: int = Field(default=5, ge=1, description="描述最小长度")
    default_branch: str = Field(default="Damen", description="兜底主分支")
    snapshot_on_failure: bool = Field(default=True, description="失败时截图")


# ========== 主配置类 ==========


class Settings(BaseSettings):
    """应用配置主类.

    从环境变量、.env文件和YAML配置文件加载配置。
    优先级：环境变量 > YAML > 默认值

    Attributes:
        environment: 运行环境
        vinted_email: Vinted 登录邮箱(仅 login 命令使用)
        vinted_password: Vinted 登录密码
        data_logs_dir: 日志目录
        data_debug_dir: 调试输出目录
        logging: 日志配置
        browser: 浏览器配置
        marketplace: 站点配置
        timing: 等待配置
        photos: 图片配置
        publish: 发布配置

    Examples:
        >>> from vinted_auto_publish.config import settings
        >>> settings.marketplace.new_item_path
        '/items/new'
    """

    environment: str = Field(default="development", description="运行环境")

    vinted_email: str = Field(default="", description="Vinted 登录邮箱")
    vinted_password: str = Field(default="", description="Vinted 登录密码")

    data_logs_dir: str = Field(default="data/logs", description="日志目录")
    data_debug_dir: str = Field(default="data/debug", description="调试输出目录")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    marketplace: MarketplaceConfig = Field(default_factory=MarketplaceConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    photos: PhotoConfig = Field(default_factory=PhotoConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",  # 支持 BROWSER__HEADLESS=false
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """验证环境名称."""
        valid_envs = ["development", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"环境必须是: {valid_envs}")
        return v

    def get_absolute_path(self, relative_path: str) -> Path:
        """将相对路径转换为以当前工作目录为基准的绝对路径."""
        path = Path(relative_path)
        if path.is_absolute():
            return path
        return Path.cwd() / path

    def ensure_directories(self) -> None:
        """确保日志与调试目录存在."""
        for dir_path in [self.data_logs_dir, self.data_debug_dir]:
            self.get_absolute_path(dir_path).mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> dict[str, Any]:
        """转换为字典（隐藏敏感信息）."""
        data = self.model_dump()
        if data.get("vinted_password"):
            data["vinted_password"] = "***"
        return data


# ========== 配置加载 ==========


def load_environment_config(
    env: str = "development", config_dir: Path | None = None
) -> dict[str, Any]:
    """从YAML文件加载环境配置，支持别名引用."""

    config_dir = config_dir or Path(__file__).parent / "environments"
    target_file = config_dir / f"{env}.yaml"

    def _load(file_path: Path, seen: set[Path]) -> dict[str, Any]:
        if file_path in seen:
            raise ValueError(f"检测到环境配置的循环引用: {file_path}")
        seen.add(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"环境配置文件不存在: {file_path}")

        with file_path.open("r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle)

        if content is None:
            return {}

        if isinstance(content, str):
            alias = content.strip()
            if not alias:
                raise ValueError(f"环境配置别名不能为空: {file_path}")

            if alias.endswith((".yaml", ".yml")):
                alias_file = file_path.parent / alias
            else:
                alias_file = file_path.parent / f"{alias}.yaml"

            return _load(alias_file, seen)

        if not isinstance(content, dict):
            raise TypeError(
                f"环境配置 {file_path} 必须是字典或别名字符串, 当前类型: {type(content).__name__}",
            )

        return content

    return _load(target_file, set())


def create_settings(env: str | None = None, config_dir: Path | None = None) -> Settings:
    """创建配置实例.

    Args:
        env: 环境名称，如果为None则从环境变量获取
        config_dir: YAML 环境配置目录, 默认使用包内 environments/

    Returns:
        配置实例
    """
    if env is None:
        env = os.getenv("ENVIRONMENT", "development")

    yaml_config = load_environment_config(env, config_dir)
    merged = _deep_merge(yaml_config, load_env_overrides())
    merged["environment"] = env

    return Settings(**merged)


def load_env_overrides() -> dict[str, Any]:
    """读取 .env 与环境变量中的配置(嵌套键已按 __ 展开), 环境变量优先."""
    dotenv_values = DotEnvSettingsSource(Settings)()
    env_values = EnvSettingsSource(Settings)()
    return _deep_merge(dotenv_values, env_values)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# ========== 全局配置实例 ==========

settings = create_settings(os.getenv("ENVIRONMENT", "development"))
