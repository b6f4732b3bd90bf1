import sys

from renovation_pricing.cli import main

sys.exit(main())
