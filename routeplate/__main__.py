import sys

from routeplate.cli import main

sys.exit(main())
