from __future__ import annotations
import os
from pathlib import Path
from typing import Optional

CONFIG_DIRS = (
    Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")) / "stratum-counter",
    Path("/etc/stratum-counter"),
)

def to_abs_path(p: Optional[str | os.PathLike]) -> Optional[Path]:
    """Resolve a config file argument to an absolute path.
    Sequence:
      1) Absolute: expanduser+resolve
      2) Relative to CWD, if it exists there
      3) Bare name inside CONFIG_DIRS, first hit
    Falls back to the CWD-relative path so the caller can report it.
    """
    if not p:
        return None
    pp = Path(p).expanduser()
    if pp.is_absolute():
        return pp.resolve()
    p1 = Path.cwd() / pp
    if p1.exists():
        return p1.resolve()
    for d in CONFIG_DIRS:
        cand = d.expanduser() / pp
        if cand.exists():
            return cand.resolve()
    return p1.resolve()
