import sys

from sems_monitor.main import main

sys.exit(main())
