"""Entry point for running the WIP tracking web API."""

from wiptrack_web import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
