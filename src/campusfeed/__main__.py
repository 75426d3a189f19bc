import sys

from campusfeed.cli import main

sys.exit(main())
