import sys

from termgraf.cli import main

sys.exit(main())
