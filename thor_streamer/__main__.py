"""Run the streaming client: python -m thor_streamer."""

import sys

from thor_streamer.cli import main

sys.exit(main())
