"""针孔相机模型：只读的内参/畸变 + 像素点去畸变。

说明：
- 本模块是 Tag 假设的“借用”协作方：假设对象只读它，不修改它。
- `undistort()` 输出归一化像平面坐标（等价于 K=I、无畸变的像素坐标），
  下游 PnP 直接用单位内参求解。
- 去畸变失败（形状不对、结果含 NaN/Inf）直接抛异常，不返回“部分有效”的点。
"""

from __future__ import annotations

import cv2
import numpy as np

from fiducial_tracking.types import CameraIntrinsics, as_np_f64


class PinholeCameraModel:
    """OpenCV 口径的针孔相机模型（K + dist）。"""

    def __init__(self, intr: CameraIntrinsics) -> None:
        K = as_np_f64(intr.K, (3, 3)).copy()
        if not np.isfinite(K).all() or K[0, 0] <= 0 or K[1, 1] <= 0:
            raise ValueError(f"invalid intrinsic matrix: {K.tolist()}")

        dist = np.asarray(intr.dist, dtype=np.float64).reshape(-1).copy()
        if not np.isfinite(dist).all():
            raise ValueError("distortion coefficients contain non-finite values")

        self._K = K
        self._dist = dist

    @property
    def intrinsic_matrix(self) -> np.ndarray:
        return self._K.copy()

    @property
    def distortion_coeffs(self) -> np.ndarray:
        return self._dist.copy()

    def undistort(self, points_px: np.ndarray) -> np.ndarray:
        """像素点去畸变并归一化。

        Args:
            points_px: (N,2) 像素坐标（u,v）。

        Returns:
            (N,2) 归一化像平面坐标 (x/z, y/z)。

        Raises:
            ValueError: 输入形状不对。
            RuntimeError: OpenCV 输出异常（点数不一致或含非有限值）。
        """

        pts = np.asarray(points_px, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2 or pts.shape[0] == 0:
            raise ValueError(f"points_px must be (N,2), got {pts.shape}")

        dist = self._dist if self._dist.size > 0 else None
        out = cv2.undistortPoints(pts.reshape(-1, 1, 2), self._K, dist)
        out = np.asarray(out, dtype=np.float64).reshape(-1, 2)

        if out.shape != pts.shape or not np.isfinite(out).all():
            raise RuntimeError("undistortPoints returned invalid points")
        return out
