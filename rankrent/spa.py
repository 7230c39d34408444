from __future__ import annotations

import logging
import shutil
from pathlib import Path

from rankrent.config import DEFAULT_SPA_FILES

logger = logging.getLogger("rankrent.spa")


def copy_spa_files(source_dir: str = ".", build_dir: str = "dist", files: list[str] | None = None) -> dict[str, str]:
    """Copy SPA routing fallback files into the build output, best effort."""
    source_root = Path(source_dir)
    build_root = Path(build_dir)
    results: dict[str, str] = {}

    for name in files if files is not None else DEFAULT_SPA_FILES:
        source_path = source_root / name
        if not source_path.exists():
            logger.info("%s not found, skipping", name)
            results[name] = "missing"
            continue
        try:
            build_root.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, build_root / name)
        except OSError as exc:
            logger.error("Failed to copy %s: %s", name, exc)
            results[name] = "failed"
            continue
        logger.info("Copied %s to %s", name, build_root)
        results[name] = "copied"

    return results
