import sys

from cadsync import main

sys.exit(main())
