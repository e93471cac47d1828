import sys

from coverglow.main import main

sys.exit(main())
