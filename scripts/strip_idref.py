from __future__ import annotations

import sys
from pathlib import Path

# Agrega src al path
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from idrefstrip.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
