"""Runtime settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RULESYNC_", extra="ignore")

    log_level: str = "info"
    # 空串表示只输出到 stderr，不写滚动日志文件
    log_file_path: str = ""

    # 规则文件根目录，相对路径按当前工作目录解析
    rule_dir: str = "sentinel-rules"
    rule_file_encoding: str = "utf-8"
    poll_interval_seconds: float = Field(default=3.0, gt=0.0)
    io_timeout_seconds: float = Field(default=5.0, gt=0.0)
    max_rule_file_bytes: int = Field(default=1024 * 1024, gt=0)

    # init_config 执行后是否校验五个规则文件都已就绪
    init_strict: bool = True


settings = Settings()
