"""Allow running the solver with `python -m lyne`."""

from lyne import main

main()
