import sys

from pylm.practicals import main

sys.exit(main())
