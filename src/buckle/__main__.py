# src/buckle/__main__.py
from buckle.cli import main

raise SystemExit(main())
