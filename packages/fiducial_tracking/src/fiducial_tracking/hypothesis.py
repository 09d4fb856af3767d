"""单个 Tag 的跟踪假设（TagHypothesis）：时序滤波 + 连续性判定 + 收敛判定 + 3D 重建。

状态（概念上，不单独存储）：
    未初始化 -> 跟踪中 -> 已收敛（收敛是派生查询，不是存储的标志位）。

`update(corners, stamp_s)` 的流程：
    1) 无条件记录最新观测角点与时间戳。
    2) 首帧：播种滤波器与 filtered 角点，返回 True。
    3) 否则比较 filtered 中心与新观测中心的距离；超过 new_hypothesis_transl_px
       视为“换了一个物体/误关联”，整体硬重置（不做预测/校正），返回 False。
    4) 否则 4 个角点各自预测 + 校正，返回 True。

说明：
    - 硬重置会丢弃滤波历史，代价是重新收敛的短暂延迟，换来的是不被离群关联污染。
    - 相机模型是借用的，本类只读它。
    - 本类不做内部加锁；同一实例只能由一个更新循环串行调用。
"""

from __future__ import annotations

import dataclasses
import logging

import numpy as np

from fiducial_tracking.camera_model import PinholeCameraModel
from fiducial_tracking.config import TagHypothesisConfig
from fiducial_tracking.convergence import is_converged
from fiducial_tracking.kalman import CornerFilterBank
from fiducial_tracking.logging_utils import default_logger
from fiducial_tracking.pnp import center_2d, center_3d, solve_tag_points_3d
from fiducial_tracking.types import DynamicsModel, as_corners_2d


class TagHypothesis:
    """单个 Tag id 的跟踪状态。"""

    def __init__(
        self,
        tag_id: int,
        camera: PinholeCameraModel,
        config: TagHypothesisConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._tag_id = int(tag_id)
        self._camera = camera
        self._cfg = (config or TagHypothesisConfig()).validate()
        self._logger = logger or default_logger()

        self._first_observation = True
        self._first_stamp_s = 0.0
        self._last_stamp_s = 0.0

        self._latest_corners: np.ndarray | None = None
        self._filtered_corners: np.ndarray | None = None
        self._filters = CornerFilterBank()

    # ------------------------------------------------------------------
    # 更新
    # ------------------------------------------------------------------

    def update(self, corners: np.ndarray, stamp_s: float) -> bool:
        """喂入一帧观测。

        Args:
            corners: (4,2) 像素角点，顺序与模板一致（TL, TR, BR, BL）。
            stamp_s: 观测时间戳（秒，单调）。

        Returns:
            True 表示与之前的观测连续；False 表示检测到中心跳变并已硬重置。

        Raises:
            ValueError: 角点不是 (4,2)，或时间戳早于上一帧。
            NotImplementedError: 配置了 CONSTANT_VELOCITY 动力学模型。
        """

        pts = as_corners_2d(corners)
        t = float(stamp_s)
        if not self._first_observation and t < self._last_stamp_s:
            raise ValueError(f"tag {self._tag_id}: stamp went backwards ({t} < {self._last_stamp_s})")
        dt = t - self._last_stamp_s

        self._latest_corners = pts
        self._last_stamp_s = t

        if self._first_observation:
            self._reset(pts, t)
            self._first_observation = False
            self._logger.debug("tag %d: first observation at t=%.6f", self._tag_id, t)
            return True

        assert self._filtered_corners is not None
        jump = float(np.linalg.norm(center_2d(self._filtered_corners) - center_2d(pts)))
        if jump > float(self._cfg.new_hypothesis_transl_px):
            self._reset(pts, t)
            self._logger.debug(
                "tag %d: center jumped %.2f px (> %.2f), hypothesis reset at t=%.6f",
                self._tag_id,
                jump,
                float(self._cfg.new_hypothesis_transl_px),
                t,
            )
            return False

        self._filtered_corners = self._filters.predict_and_correct(
            pts,
            dt=dt,
            dynamics_model=self._cfg.dynamics_model,
        )
        return True

    def is_alive(self, stamp_s: float) -> bool:
        """存活探测：距最近一次观测的时间严格小于 max_no_observation_time_s。

        不修改任何状态；返回 False 时由上层决定丢弃本假设。
        从未收到观测时返回 False。
        """

        if self._first_observation:
            return False
        since_last = float(stamp_s) - self._last_stamp_s
        return since_last < float(self._cfg.max_no_observation_time_s)

    def _reset(self, pts: np.ndarray, stamp_s: float) -> None:
        # 先播种滤波器：若动力学模型不支持会在这里抛异常，此时 filtered 状态保持不变。
        self._filters.init(
            pts,
            dynamics_model=self._cfg.dynamics_model,
            measurement_noise=float(self._cfg.measurement_noise_transl_px),
            process_noise=float(self._cfg.process_noise_transl_px),
        )
        self._first_stamp_s = float(stamp_s)
        self._filtered_corners = pts.copy()

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    @property
    def tag_id(self) -> int:
        return self._tag_id

    @property
    def config(self) -> TagHypothesisConfig:
        return self._cfg

    @property
    def first_observation(self) -> bool:
        return self._first_observation

    @property
    def first_stamp_s(self) -> float:
        return self._first_stamp_s

    @property
    def last_stamp_s(self) -> float:
        return self._last_stamp_s

    def _require_observed(self) -> None:
        if self._first_observation:
            raise RuntimeError(f"tag {self._tag_id}: no observation yet")

    def latest_points_2d(self) -> np.ndarray:
        self._require_observed()
        assert self._latest_corners is not None
        return self._latest_corners.copy()

    def filtered_points_2d(self) -> np.ndarray:
        self._require_observed()
        assert self._filtered_corners is not None
        return self._filtered_corners.copy()

    def latest_points_3d(self) -> np.ndarray:
        return self._points_3d(self.latest_points_2d())

    def filtered_points_3d(self) -> np.ndarray:
        return self._points_3d(self.filtered_points_2d())

    def _points_3d(self, image_points: np.ndarray) -> np.ndarray:
        res = solve_tag_points_3d(
            corners_px=image_points,
            camera=self._camera,
            tag_size_m=float(self._cfg.tag_size_m),
        )
        return res.points_3d

    def latest_center_2d(self) -> np.ndarray:
        return center_2d(self.latest_points_2d())

    def filtered_center_2d(self) -> np.ndarray:
        return center_2d(self.filtered_points_2d())

    def latest_center_3d(self) -> np.ndarray:
        return center_3d(self.latest_points_3d())

    def filtered_center_3d(self) -> np.ndarray:
        return center_3d(self.filtered_points_3d())

    def position_sigmas(self) -> np.ndarray:
        """每个角点的 1-sigma 位置不确定度（像素），形状 (4,)。"""

        self._require_observed()
        return self._filters.position_sigmas()

    def converged(self) -> bool:
        if self._first_observation:
            return False
        return is_converged(
            first_observation=self._first_observation,
            first_stamp_s=self._first_stamp_s,
            last_stamp_s=self._last_stamp_s,
            position_sigmas=self._filters.position_sigmas(),
            min_convergence_time_s=float(self._cfg.min_convergence_time_s),
            convergence_transl=float(self._cfg.max_convergence_transl_px),
        )

    # ------------------------------------------------------------------
    # 配置（每一项都可以在构造后独立修改）
    # ------------------------------------------------------------------

    def _replace_config(self, **changes: object) -> None:
        self._cfg = dataclasses.replace(self._cfg, **changes).validate()

    def set_dynamics_model(self, dynamics_model: DynamicsModel) -> None:
        self._replace_config(dynamics_model=dynamics_model)

    def set_tag_size(self, size_m: float) -> None:
        self._replace_config(tag_size_m=float(size_m))

    def set_min_convergence_time(self, seconds: float) -> None:
        self._replace_config(min_convergence_time_s=float(seconds))

    def set_max_convergence_threshold(self, transl_px: float) -> None:
        self._replace_config(max_convergence_transl_px=float(transl_px))

    def set_new_hypothesis_threshold(self, max_transl_px: float) -> None:
        self._replace_config(new_hypothesis_transl_px=float(max_transl_px))

    def set_max_no_observation_time(self, seconds: float) -> None:
        self._replace_config(max_no_observation_time_s=float(seconds))

    def set_measurement_noise(self, transl_px: float) -> None:
        """修改观测噪声；在下一次（重新）播种滤波器时生效。"""

        self._replace_config(measurement_noise_transl_px=float(transl_px))

    def set_process_noise(self, transl_px: float) -> None:
        """修改过程噪声；在下一次（重新）播种滤波器时生效。"""

        self._replace_config(process_noise_transl_px=float(transl_px))
