"""Allow ``python -m minigit``."""

from minigit.cli.main import app

if __name__ == "__main__":
    app(prog_name="minigit")
