"""fiducial_tracking 对外稳定入口（public API）。

本包目标：
- 输入：相机内参 + 单个 Tag 每帧的四角点像素坐标 + 时间戳。
- 输出：时序滤波后的角点、收敛标志、以及相机系下的 4 个 3D 角点（供外参标定使用）。

说明：
- 本包不负责图像采集与 AprilTag 检测；你只需要把 detector 的角点结果喂进来。
- 只要你保证角点顺序与本包 object_points 的顺序一致，PnP 重建就是确定的。
- 下游请只从这里（或包顶层）导入，避免耦合内部模块结构。
"""

from __future__ import annotations

from fiducial_tracking.calib_io import (
    load_camera_intrinsics_from_calib_json,
    load_camera_model_from_calib_json,
)
from fiducial_tracking.camera_model import PinholeCameraModel
from fiducial_tracking.config import TagHypothesisConfig
from fiducial_tracking.config_yaml import load_tag_hypothesis_config_yaml, tag_hypothesis_config_from_dict
from fiducial_tracking.hypothesis import TagHypothesis
from fiducial_tracking.kalman import CornerFilterBank, CornerKalmanFilter
from fiducial_tracking.pnp import TagPnPResult, center_2d, center_3d, solve_tag_points_3d, tag_object_points
from fiducial_tracking.tracker import TagTracker
from fiducial_tracking.types import NUM_TAG_CORNERS, CameraIntrinsics, DynamicsModel

__all__ = [
    "NUM_TAG_CORNERS",
    "CameraIntrinsics",
    "CornerFilterBank",
    "CornerKalmanFilter",
    "DynamicsModel",
    "PinholeCameraModel",
    "TagHypothesis",
    "TagHypothesisConfig",
    "TagPnPResult",
    "TagTracker",
    "center_2d",
    "center_3d",
    "load_camera_intrinsics_from_calib_json",
    "load_camera_model_from_calib_json",
    "load_tag_hypothesis_config_yaml",
    "solve_tag_points_3d",
    "tag_hypothesis_config_from_dict",
    "tag_object_points",
]
