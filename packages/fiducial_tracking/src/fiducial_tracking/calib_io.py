"""读取本仓库标定文件里的单相机内参（camera_extrinsics_C_T_B.json 风格）。

背景：
- Tag 假设只需要 K/dist 做去畸变，因此这里只取内参字段，外参（R_wc/t_wc）忽略。
- 支持 JSON 与 YAML（.json/.yaml/.yml），顶层结构一致：
  {"cameras": {"<camera>": {"K": [[...]], "dist": [...]}}}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np
import yaml

from fiducial_tracking.camera_model import PinholeCameraModel
from fiducial_tracking.types import CameraIntrinsics


def _as_mat(x: Any, shape: tuple[int, int], name: str) -> np.ndarray:
    a = np.asarray(x, dtype=np.float64)
    if a.shape != shape:
        raise RuntimeError(f"{name} 形状应为 {shape}，实际为 {a.shape}")
    return a


def _load_mapping(p: Path) -> dict[str, Any]:
    suffix = p.suffix.lower()
    try:
        text = p.read_text(encoding="utf-8")
        if suffix == ".json":
            data = json.loads(text)
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            raise RuntimeError(f"不支持的标定文件类型: {p}（仅支持 .json/.yaml/.yml）")
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RuntimeError(f"无法读取标定文件: {p}") from exc

    if not isinstance(data, dict):
        raise RuntimeError("标定文件顶层必须是对象（dict）")
    return data


def load_camera_intrinsics_from_calib_json(
    *,
    calib_json_path: Path,
    camera: str,
) -> CameraIntrinsics:
    """从标定文件读取单个相机的内参。

    Args:
        calib_json_path: 标定文件路径（包含 cameras 字段）。
        camera: 相机 key（通常是序列号，例如 DA8199303）。

    Returns:
        CameraIntrinsics。

    Raises:
        RuntimeError: 文件缺失、schema 不符合预期、或指定相机不存在。
    """

    p = Path(calib_json_path)
    if not p.exists():
        raise RuntimeError(f"找不到标定文件: {p}")

    data = _load_mapping(p)

    cams = data.get("cameras")
    if not isinstance(cams, dict) or not cams:
        raise RuntimeError("标定文件缺少 cameras 字段或为空")

    cam = cams.get(str(camera))
    if not isinstance(cam, dict):
        avail = ",".join(sorted(str(k) for k in cams.keys()))
        raise RuntimeError(f"标定文件中找不到相机 {camera}（可用：{avail}）")

    K = _as_mat(cam.get("K"), (3, 3), f"{camera}.K")
    dist_raw = cam.get("dist", [])
    dist = np.asarray(dist_raw if dist_raw is not None else [], dtype=np.float64).reshape(-1)

    return CameraIntrinsics(K=K, dist=dist)


def load_camera_model_from_calib_json(*, calib_json_path: Path, camera: str) -> PinholeCameraModel:
    """读取内参并直接构造 `PinholeCameraModel`。"""

    intr = load_camera_intrinsics_from_calib_json(calib_json_path=calib_json_path, camera=camera)
    return PinholeCameraModel(intr)
