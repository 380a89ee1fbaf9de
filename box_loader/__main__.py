import sys

from box_loader.cli import main

sys.exit(main())
