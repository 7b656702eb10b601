import uvicorn

from rate_gate.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the app with uvicorn (``rate-gate`` console script)."""
    uvicorn.run("rate_gate.main:app", host="0.0.0.0", port=8080)
