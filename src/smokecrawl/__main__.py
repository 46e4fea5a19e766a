import sys

from smokecrawl.cli import main

sys.exit(main())
