import sys

from regionpipe.cli import main

sys.exit(main())
