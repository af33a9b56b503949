"""Allow running as `python -m rpcwire`."""

from rpcwire.cli.main import main

if __name__ == "__main__":
    main()
