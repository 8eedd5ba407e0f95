import sys

from sparqlmap.cli import main

sys.exit(main())
