import sys

from codecopier.cli import main

sys.exit(main())
