"""``python -m PoissonCG GROUND_PATH APPROX_PATH N``"""

import sys

from .runner import main

sys.exit(main())
