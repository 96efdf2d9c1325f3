import sys

from btw_engine.cli import main

sys.exit(main())
