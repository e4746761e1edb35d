"""
Invest Tracker launcher.

Runs the rentability window from a source checkout without installing the
package: python invest-tracker.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from invest_tracker.app import main  # noqa: E402

if __name__ == "__main__":
    main()
