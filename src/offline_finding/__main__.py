import sys

from offline_finding.main import main

sys.exit(main())
