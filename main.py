# FastAPI application entry point for `uvicorn main:app`
# The application itself lives in the app package

from app.main import app  # noqa: F401
