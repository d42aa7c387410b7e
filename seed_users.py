from __future__ import annotations

import sys

from user_seeder.seeder import main


if __name__ == "__main__":
    sys.exit(main())
