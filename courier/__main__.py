import sys

from courier.app import main

sys.exit(main())
