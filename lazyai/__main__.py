import sys

from lazyai.cli import main

sys.exit(main())
