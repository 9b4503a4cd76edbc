from __future__ import annotations

import sys

from drone_agent.runtime import main

sys.exit(main())
