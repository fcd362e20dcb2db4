import sys

from macrobius_realtime.main import main

sys.exit(main())
