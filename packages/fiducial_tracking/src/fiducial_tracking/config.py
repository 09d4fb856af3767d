"""单个 Tag 假设（TagHypothesis）的配置。

说明：
    - 这是一个“纯模型”模块，只包含 dataclass 配置定义，不做任何 IO；
      YAML 读取见 `fiducial_tracking.config_yaml`。
    - 滤波在像素域进行，因此平移类阈值/噪声的单位都是像素（px）；
      只有 tag_size_m 是物理尺寸（米），用于 PnP 模板。

属性说明：
    dynamics_model: 角点滤波器的动力学模型。仅支持 STATIC。
    tag_size_m: Tag 边长（米）。
    min_convergence_time_s: 自（最近一次重置后的）首帧起，至少跟踪这么久才允许判定收敛。
    max_convergence_transl_px: 收敛阈值：每个角点 1-sigma 位置不确定度的上限。
    new_hypothesis_transl_px: 滤波中心与新观测中心的距离超过该值时，视为新假设并硬重置。
    max_no_observation_time_s: 距最近一次观测超过（或等于）该时长，则假设失效。
    measurement_noise_transl_px: 观测噪声标准差。
    process_noise_transl_px: 过程噪声标准差。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from fiducial_tracking.types import DynamicsModel


@dataclass(frozen=True)
class TagHypothesisConfig:
    """TagHypothesis 的全部可调参数（默认值显式给出）。"""

    dynamics_model: DynamicsModel = DynamicsModel.STATIC
    tag_size_m: float = 0.16

    min_convergence_time_s: float = 1.0
    max_convergence_transl_px: float = 0.5

    new_hypothesis_transl_px: float = 50.0
    max_no_observation_time_s: float = 1.0

    measurement_noise_transl_px: float = 2.0
    process_noise_transl_px: float = 0.05

    def validate(self) -> "TagHypothesisConfig":
        """校验取值范围；通过则返回自身，便于链式使用。

        Raises:
            ValueError: 任一字段非法。
        """

        if not isinstance(self.dynamics_model, DynamicsModel):
            raise ValueError(f"dynamics_model must be DynamicsModel, got {self.dynamics_model!r}")

        def _finite(name: str) -> float:
            v = float(getattr(self, name))
            if not math.isfinite(v):
                raise ValueError(f"{name} must be finite, got {v}")
            return v

        if _finite("tag_size_m") <= 0:
            raise ValueError(f"tag_size_m must be positive, got {self.tag_size_m}")

        for name in (
            "min_convergence_time_s",
            "max_convergence_transl_px",
            "new_hypothesis_transl_px",
            "max_no_observation_time_s",
            "measurement_noise_transl_px",
            "process_noise_transl_px",
        ):
            if _finite(name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

        # R 全零会让 S 在 P 收敛到 0 后奇异。
        if float(self.measurement_noise_transl_px) == 0.0 and float(self.process_noise_transl_px) == 0.0:
            raise ValueError("measurement and process noise cannot both be zero")

        return self
