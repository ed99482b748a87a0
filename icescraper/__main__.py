import sys

from icescraper.cli import main

sys.exit(main())
