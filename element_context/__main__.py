"""Module entry point for the element-context CLI."""

from .main import main

raise SystemExit(main())
