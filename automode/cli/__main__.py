"""Allow running as: python -m automode.cli"""

from automode.cli.main import main

main()
