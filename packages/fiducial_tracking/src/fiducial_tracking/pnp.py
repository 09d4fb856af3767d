"""PnP 角点重建：由 Tag 四角点像素坐标得到相机坐标系下的 4 个 3D 角点。

关键点：
- 本模块只做几何求解；Tag 检测（像素角点提取）由上游负责。
- OpenCV 坐标系约定：
  - 相机坐标系：x 向右，y 向下，z 向前（从相机指向场景）。
  - 像素坐标：u 向右，v 向下。
- 流程：先用相机模型去畸变到归一化像平面，再用 SQPnP（全局最优、非迭代）
  以单位内参求解，最后把模板角点变换到相机系。

角点顺序约定：
- corners_px 与 object_points 的顺序必须一致（TL, TR, BR, BL）。
- 模板以 tag 中心为原点、位于 z=0 平面，y 轴朝上：
  [(-s/2, s/2, 0), (s/2, s/2, 0), (s/2, -s/2, 0), (-s/2, -s/2, 0)]

如果你的 detector 给的角点顺序不同，请在调用前进行重排。
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from fiducial_tracking.camera_model import PinholeCameraModel
from fiducial_tracking.transforms import make_T, transform_points
from fiducial_tracking.types import NUM_TAG_CORNERS, as_corners_2d, as_corners_3d


@dataclass(frozen=True, slots=True)
class TagPnPResult:
    """PnP 求解结果。"""

    points_3d: np.ndarray  # (4,3)，相机系，顺序与输入角点一致
    T_cam_from_tag: np.ndarray  # (4,4)
    reproj_rmse_px: float


def tag_object_points(*, tag_size_m: float) -> np.ndarray:
    """构造 tag 4 角点在 tag 坐标系下的 3D 坐标（单位：米）。"""

    s = float(tag_size_m)
    if not np.isfinite(s) or s <= 0:
        raise ValueError(f"tag_size_m must be positive, got {tag_size_m}")

    h = 0.5 * s
    # 顺序：TL, TR, BR, BL
    return np.array(
        [
            [-h, h, 0.0],
            [h, h, 0.0],
            [h, -h, 0.0],
            [-h, -h, 0.0],
        ],
        dtype=np.float64,
    )


def solve_tag_points_3d(
    *,
    corners_px: np.ndarray,
    camera: PinholeCameraModel,
    tag_size_m: float,
) -> TagPnPResult:
    """用四角点解算 tag 在相机坐标系下的 4 个 3D 角点。

    Args:
        corners_px: (4,2) 像素坐标（u,v）。必须与 object_points 顺序一致。
        camera: 相机模型（只读）。
        tag_size_m: Tag 边长（米）。

    Returns:
        TagPnPResult。

    Raises:
        ValueError: 角点数量/形状不对，或 tag_size_m 非法。
        RuntimeError: 去畸变失败，或 SQPnP 没有给出唯一解。
    """

    img_pts = as_corners_2d(corners_px)
    obj_pts = tag_object_points(tag_size_m=float(tag_size_m))

    norm_pts = camera.undistort(img_pts)

    # 说明：去畸变后已经是归一化坐标，因此这里用 K=I、无畸变。
    # 4 个共面点在合法输入下必有解；0 个或多个解都视为契约错误，直接失败。
    n, rvecs, tvecs, _ = cv2.solvePnPGeneric(
        objectPoints=obj_pts,
        imagePoints=norm_pts,
        cameraMatrix=np.eye(3, dtype=np.float64),
        distCoeffs=None,
        flags=int(cv2.SOLVEPNP_SQPNP),
    )
    if int(n) == 0 or len(rvecs) == 0:
        raise RuntimeError("solvePnP (SQPnP) returned no solution")
    if int(n) != 1 or len(rvecs) != 1:
        raise RuntimeError(f"solvePnP (SQPnP) returned {int(n)} solutions, expected exactly 1")

    rvec = np.asarray(rvecs[0], dtype=np.float64).reshape(3, 1)
    tvec = np.asarray(tvecs[0], dtype=np.float64).reshape(3, 1)

    R, _ = cv2.Rodrigues(rvec)
    T = make_T(R=np.asarray(R, dtype=np.float64), t=tvec.reshape(3))
    points_3d = transform_points(T, obj_pts)

    # 计算重投影 RMSE（像素，含畸变）。
    dist = camera.distortion_coeffs if camera.distortion_coeffs.size > 0 else None
    proj, _ = cv2.projectPoints(obj_pts, rvec, tvec, camera.intrinsic_matrix, dist)
    proj = np.asarray(proj, dtype=np.float64).reshape(NUM_TAG_CORNERS, 2)
    err = proj - img_pts
    rmse = float(np.sqrt(np.mean(np.sum(err * err, axis=1))))

    return TagPnPResult(points_3d=points_3d, T_cam_from_tag=T, reproj_rmse_px=rmse)


def center_2d(corners_px: np.ndarray) -> np.ndarray:
    """4 个像素角点的算术平均，形状 (2,)。"""

    return as_corners_2d(corners_px).mean(axis=0)


def center_3d(corners_3d: np.ndarray) -> np.ndarray:
    """4 个 3D 角点的算术平均，形状 (3,)。"""

    return as_corners_3d(corners_3d).mean(axis=0)
