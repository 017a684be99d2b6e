import sys

from foreman_converge.cli import main

sys.exit(main())
