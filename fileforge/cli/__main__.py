"""Allow ``python -m fileforge.cli`` execution."""

from fileforge.cli.convert import main

main()
