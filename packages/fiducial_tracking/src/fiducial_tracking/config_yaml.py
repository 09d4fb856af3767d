"""TagHypothesisConfig 的 YAML 配置加载入口。

约定：
    - YAML 顶层为 mapping，字段名与 `TagHypothesisConfig` 一致。
    - 未知字段会报错，避免拼写错误静默失效。
    - dynamics_model 用字符串给出："static" / "constant_velocity"。
    - 未给出的字段使用 dataclass 默认值。

依赖：
    - 本模块依赖 PyYAML（`pyyaml`）。
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from fiducial_tracking.config import TagHypothesisConfig
from fiducial_tracking.types import DynamicsModel


def _as_mapping(x: Any) -> Mapping[str, Any]:
    if x is None:
        return {}
    if isinstance(x, Mapping):
        return x
    raise TypeError(f"YAML 根节点必须是 mapping，实际是：{type(x).__name__}")


def tag_hypothesis_config_from_dict(data: Mapping[str, Any]) -> TagHypothesisConfig:
    """从 dict（通常来自 YAML）构造并校验 `TagHypothesisConfig`。"""

    allowed = {f.name for f in fields(TagHypothesisConfig)}
    unknown = sorted(set(data.keys()) - allowed)
    if unknown:
        raise KeyError(f"TagHypothesisConfig 出现未知字段：{unknown}")

    kwargs = dict(data)
    if "dynamics_model" in kwargs and not isinstance(kwargs["dynamics_model"], DynamicsModel):
        raw = kwargs["dynamics_model"]
        try:
            kwargs["dynamics_model"] = DynamicsModel(str(raw))
        except ValueError as e:
            choices = [m.value for m in DynamicsModel]
            raise ValueError(f"dynamics_model 取值非法：{raw!r}（可选：{choices}）") from e

    for k, v in list(kwargs.items()):
        if k != "dynamics_model":
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise ValueError(f"{k} 必须是数值，实际是：{v!r}")
            kwargs[k] = float(v)

    return TagHypothesisConfig(**kwargs).validate()


def load_tag_hypothesis_config_yaml(path: str | Path) -> TagHypothesisConfig:
    """从 YAML 文件加载 `TagHypothesisConfig`。"""

    p = Path(path)
    text = p.read_text(encoding="utf-8")
    payload = yaml.safe_load(text)
    return tag_hypothesis_config_from_dict(_as_mapping(payload))
