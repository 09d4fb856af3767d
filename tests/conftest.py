"""pytest 运行期配置。

代码位于 `packages/fiducial_tracking/src/`（src-layout），测试运行应基于已安装到
当前环境的包（例如 `pip install -e ".[test]"` 后再执行 `python -m pytest`）。

注意：请不要在测试侧把 `src` 注入 sys.path，避免出现“源码目录 + 已安装包”双来源
导致的导入歧义。
"""

from __future__ import annotations
