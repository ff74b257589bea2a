import sys

from playlist_harvest.main import main

sys.exit(main())
