"""Rule models for the five rule kinds.

Field names on disk are camelCase, matching what the dashboard pushes;
Python attributes are snake_case. Both spellings are accepted on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RuleModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FlowRule(RuleModel):
    resource: str = Field(min_length=1)
    limit_app: str = "default"
    # 0: 线程数, 1: QPS
    grade: int = Field(default=1, ge=0, le=1)
    count: float = Field(ge=0)
    # 0: 直接, 1: 关联, 2: 链路
    strategy: int = Field(default=0, ge=0, le=2)
    ref_resource: str | None = None
    # 0: 快速失败, 1: 预热, 2: 排队等待, 3: 预热+排队
    control_behavior: int = Field(default=0, ge=0, le=3)
    warm_up_period_sec: int = 10
    max_queueing_time_ms: int = 500
    cluster_mode: bool = False


class DegradeRule(RuleModel):
    resource: str = Field(min_length=1)
    limit_app: str = "default"
    # 0: 慢调用比例(RT), 1: 异常比例, 2: 异常数
    grade: int = Field(default=0, ge=0, le=2)
    count: float = Field(ge=0)
    time_window: int = Field(default=0, ge=0)
    min_request_amount: int = 5
    slow_ratio_threshold: float = 1.0
    stat_interval_ms: int = 1000


class SystemRule(RuleModel):
    # 负数表示该项不生效
    highest_system_load: float = -1
    highest_cpu_usage: float = -1
    qps: float = -1
    avg_rt: int = -1
    max_thread: int = -1


class AuthorityRule(RuleModel):
    resource: str = Field(min_length=1)
    limit_app: str = "default"
    # 0: 白名单, 1: 黑名单
    strategy: int = Field(default=0, ge=0, le=1)


class ParamFlowItem(RuleModel):
    object_: str | None = Field(default=None, alias="object")
    count: int = Field(default=0, ge=0)
    class_type: str | None = None


class ParamFlowRule(RuleModel):
    resource: str = Field(min_length=1)
    limit_app: str = "default"
    grade: int = Field(default=1, ge=0, le=1)
    param_idx: int = Field(ge=0)
    count: float = Field(ge=0)
    control_behavior: int = Field(default=0, ge=0, le=2)
    max_queueing_time_ms: int = 0
    burst_count: int = 0
    duration_in_sec: int = 1
    param_flow_item_list: tuple[ParamFlowItem, ...] = ()
    cluster_mode: bool = False
