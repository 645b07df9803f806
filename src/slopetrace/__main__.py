# PROV: SLOPETRACE.MAIN.01
# WHY: Allow `python -m slopetrace ...` as a stable entrypoint for the CLI.

from .cli import main

if __name__ == "__main__":
    main()
