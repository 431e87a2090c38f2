import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_path(path: Path) -> None:
    """Best-effort removal of a temp file or directory. Idempotent; never raises."""
    path = Path(path)
    try:
        if path.is_dir():
            shutil.rmtree(path, ignore_errors=True)
        else:
            path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove temp path {path}: {e}")
