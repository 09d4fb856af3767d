"""数据结构：相机内参、动力学模型与 Tag 角点集合。

说明：
- 本包只负责“单个 Tag 的时序滤波 + 收敛判定 + 角点 3D 重建”，不依赖采集链路，
  也不负责 AprilTag 检测；你只需要把 detector 的 4 个角点喂进来。
- 角点集合统一用 ndarray 表示：
  - 像素角点：(4,2) float64
  - 相机系 3D 角点：(4,3) float64（米）
- 角点数量固定为 4。任何其它数量都视为调用方的契约错误，直接抛异常，
  不做补齐/截断。
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

import numpy as np

NUM_TAG_CORNERS = 4


class DynamicsModel(enum.Enum):
    """单角点卡尔曼滤波的动力学模型。

    - STATIC：状态为 2D 位置，转移矩阵为单位阵。
    - CONSTANT_VELOCITY：位置 + 速度。目前只保留枚举值，任何初始化/更新路径都会
      直接抛 NotImplementedError。
    """

    STATIC = "static"
    CONSTANT_VELOCITY = "constant_velocity"


@dataclass(frozen=True, slots=True)
class CameraIntrinsics:
    """相机内参（OpenCV 口径）。

    Attributes:
        K: 相机内参矩阵 (3,3)。
        dist: 畸变参数 (N,)；若未知可传空或全 0。
    """

    K: np.ndarray
    dist: np.ndarray


def as_np_f64(x: np.ndarray | Iterable[float], shape: tuple[int, ...]) -> np.ndarray:
    """把输入转为 float64 ndarray 并校验形状。"""

    a = np.asarray(x, dtype=np.float64)
    if a.shape != shape:
        raise ValueError(f"expected shape {shape}, got {a.shape}")
    return a


def _as_corners(x: np.ndarray | Iterable, dim: int, name: str) -> np.ndarray:
    a = np.asarray(x, dtype=np.float64)
    if a.ndim != 2 or a.shape[0] != NUM_TAG_CORNERS or a.shape[1] != dim:
        raise ValueError(f"{name} must be ({NUM_TAG_CORNERS},{dim}), got {a.shape}")
    if not np.isfinite(a).all():
        raise ValueError(f"{name} contains non-finite values")
    # 拷贝一份，避免与调用方共享可变缓冲区。
    return a.copy()


def as_corners_2d(x: np.ndarray | Iterable) -> np.ndarray:
    """校验并转换 4 个像素角点，返回 (4,2) float64 副本。"""

    return _as_corners(x, 2, "corners_2d")


def as_corners_3d(x: np.ndarray | Iterable) -> np.ndarray:
    """校验并转换 4 个 3D 角点，返回 (4,3) float64 副本。"""

    return _as_corners(x, 3, "corners_3d")
