"""Allow ``python -m roster_intake``."""

from roster_intake.cli import app

if __name__ == "__main__":
    app()
