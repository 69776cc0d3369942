import sys
from pathlib import Path

# Allow running from a source checkout: pytest tests/
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
