"""Allow ``python -m docqa.cli`` execution."""

from docqa.cli.commands import main

main()
