import sys

from blueprint_docs.cli import main

sys.exit(main())
