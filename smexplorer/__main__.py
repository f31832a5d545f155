import sys

from smexplorer.cli import main

sys.exit(main())
