"""Cloud Functions source root: deploy with `--entry-point app`."""
from src.main import app  # noqa: F401
