"""Allow running as: python -m operator_redisenterprise"""

from operator_redisenterprise.cli import main

main()
