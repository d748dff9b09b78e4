"""Path-coefficient analysis -- thin wrapper around ``pathcoef.cli``.

Lets ``python scripts/run_path_analysis.py`` work from a checkout without
installing the console script.

CLI usage::

    python scripts/run_path_analysis.py --data trial.csv --response yield --select

For library usage::

    from pathcoef import PathConfig, path_coeff
"""

import os
import sys

# Make the repo root importable when run from a checkout.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, REPO_ROOT)

from pathcoef.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
