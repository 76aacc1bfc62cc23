"""
Whole-file atomic writes for the local JSON stores.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def atomic_write_json(path: Path, data: Any) -> None:
    """
    Serialize data as indented JSON and replace path atomically.

    The temp file lives in the target's directory so os.replace stays on one
    filesystem. If anything fails, the previous file is left intact.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=2) + "\n"

    temp_fd, temp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())

        # Only overwrite original if write succeeded
        os.replace(temp_path, path)
    except Exception:
        # Clean up temp file if write failed
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
