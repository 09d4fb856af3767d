"""fiducial_tracking：单个人工靶标（例如 AprilTag）的时序跟踪与 3D 角点重建。

说明：
- 对外 API 仅从 `fiducial_tracking.api` 暴露，避免下游耦合内部模块结构。
"""

from fiducial_tracking.api import (
    NUM_TAG_CORNERS,
    CameraIntrinsics,
    CornerFilterBank,
    CornerKalmanFilter,
    DynamicsModel,
    PinholeCameraModel,
    TagHypothesis,
    TagHypothesisConfig,
    TagPnPResult,
    TagTracker,
    center_2d,
    center_3d,
    load_camera_intrinsics_from_calib_json,
    load_camera_model_from_calib_json,
    load_tag_hypothesis_config_yaml,
    solve_tag_points_3d,
    tag_hypothesis_config_from_dict,
    tag_object_points,
)

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
