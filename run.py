"""The run script.

May be executed directly, e.g. `python run.py status`, as an alternative to
the installed `timekeeper` command. Uses the development configuration unless
TIMEKEEPER_CONFIG says otherwise."""

import os
import sys

from timekeeper.cli import main


if __name__ == '__main__':
    os.environ.setdefault('TIMEKEEPER_CONFIG', 'config/dev.py')
    sys.exit(main())
