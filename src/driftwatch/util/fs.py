# src/driftwatch/util/fs.py: Filesystem utilities.
# Status files are rewritten on every drift check, possibly while another
# process reads them, so writes go through a temporary file and a rename.

import os
from pathlib import Path

def atomic_write(path: str | Path, content: str):
    """Write content to a file atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = f"{path}.tmp"
    with open(temp_path, "w") as f:
        f.write(content)
    os.replace(temp_path, path)
