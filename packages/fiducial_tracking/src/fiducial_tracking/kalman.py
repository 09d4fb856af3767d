"""角点滤波器组：4 个互相独立的小卡尔曼滤波器（每个角点一个）。

设计：
- 每个滤波器只估计一个角点的像素位置（STATIC 模型：状态 2 维，F=H=I）。
- 噪声参数以“标准差（像素）”给出，内部平方后写入协方差对角线。
- 重新初始化是原子的：先构造 4 个新滤波器，再整体替换，不会出现“部分角点是旧状态”。
- CONSTANT_VELOCITY 模型只保留枚举值；初始化/更新时直接抛 NotImplementedError。
"""

from __future__ import annotations

import cv2
import numpy as np

from fiducial_tracking.types import NUM_TAG_CORNERS, DynamicsModel, as_corners_2d


def _require_static(dynamics_model: DynamicsModel) -> None:
    if dynamics_model is not DynamicsModel.STATIC:
        raise NotImplementedError(f"dynamics model {dynamics_model.value!r} is not supported")


class CornerKalmanFilter:
    """单角点线性卡尔曼滤波器，薄封装 `cv2.KalmanFilter`（float64）。"""

    def __init__(self, kf: cv2.KalmanFilter) -> None:
        self._kf = kf

    @classmethod
    def static(
        cls,
        *,
        position: np.ndarray,
        measurement_noise: float,
        process_noise: float,
    ) -> "CornerKalmanFilter":
        """构造 STATIC 模型滤波器：x=测量，P=I，Q=diag(σp²)，R=diag(σm²)，F=H=I。"""

        q = float(process_noise) * float(process_noise)
        r = float(measurement_noise) * float(measurement_noise)

        kf = cv2.KalmanFilter(2, 2, 0, cv2.CV_64F)  # states x observations
        kf.transitionMatrix = np.eye(2, dtype=np.float64)
        kf.measurementMatrix = np.eye(2, dtype=np.float64)
        kf.processNoiseCov = q * np.eye(2, dtype=np.float64)
        kf.measurementNoiseCov = r * np.eye(2, dtype=np.float64)
        kf.errorCovPost = np.eye(2, dtype=np.float64)
        kf.statePost = np.asarray(position, dtype=np.float64).reshape(2, 1).copy()
        return cls(kf)

    @property
    def state_post(self) -> np.ndarray:
        return np.asarray(self._kf.statePost, dtype=np.float64).reshape(-1).copy()

    @property
    def error_cov_post(self) -> np.ndarray:
        return np.asarray(self._kf.errorCovPost, dtype=np.float64).copy()

    def predict(self) -> np.ndarray:
        """时间更新；返回先验状态。"""

        return np.asarray(self._kf.predict(), dtype=np.float64).reshape(-1).copy()

    def correct(self, z: np.ndarray) -> np.ndarray:
        """量测更新；返回后验状态。"""

        meas = np.asarray(z, dtype=np.float64).reshape(2, 1)
        return np.asarray(self._kf.correct(meas), dtype=np.float64).reshape(-1).copy()


class CornerFilterBank:
    """4 个角点滤波器的集合，索引 0..3 与输入角点顺序一一对应。"""

    def __init__(self) -> None:
        self._filters: tuple[CornerKalmanFilter, ...] = ()

    @property
    def initialized(self) -> bool:
        return len(self._filters) == NUM_TAG_CORNERS

    def init(
        self,
        corners: np.ndarray,
        *,
        dynamics_model: DynamicsModel,
        measurement_noise: float,
        process_noise: float,
    ) -> None:
        """用一组观测角点（重新）播种 4 个滤波器。

        Raises:
            ValueError: 角点不是 (4,2)。
            NotImplementedError: 非 STATIC 动力学模型。
        """

        pts = as_corners_2d(corners)
        _require_static(dynamics_model)

        self._filters = tuple(
            CornerKalmanFilter.static(
                position=pts[i],
                measurement_noise=measurement_noise,
                process_noise=process_noise,
            )
            for i in range(NUM_TAG_CORNERS)
        )

    def predict_and_correct(
        self,
        corners: np.ndarray,
        *,
        dt: float,
        dynamics_model: DynamicsModel,
    ) -> np.ndarray:
        """对每个角点先预测再校正，返回 (4,2) 后验位置。

        Args:
            corners: (4,2) 新观测。
            dt: 距上一次观测的时间（秒）。STATIC 模型下不参与计算。
            dynamics_model: 当前动力学模型。
        """

        pts = as_corners_2d(corners)
        _require_static(dynamics_model)
        if not self.initialized:
            raise RuntimeError("filter bank used before init()")

        out = np.empty((NUM_TAG_CORNERS, 2), dtype=np.float64)
        for i, kf in enumerate(self._filters):
            kf.predict()
            out[i] = kf.correct(pts[i])[:2]
        return out

    def error_covariances(self) -> list[np.ndarray]:
        return [kf.error_cov_post.copy() for kf in self._filters]

    def position_sigmas(self) -> np.ndarray:
        """每个角点的 1-sigma 位置不确定度：sqrt(max(P[0,0], P[1,1]))，形状 (4,)。"""

        if not self.initialized:
            raise RuntimeError("filter bank used before init()")

        return np.array(
            [float(np.sqrt(max(kf.error_cov_post[0, 0], kf.error_cov_post[1, 1]))) for kf in self._filters],
            dtype=np.float64,
        )
