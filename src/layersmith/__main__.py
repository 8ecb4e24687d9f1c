import sys

from layersmith.cli import main

sys.exit(main())
