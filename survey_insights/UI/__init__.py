from .dashboard import run_app

__all__ = ["run_app"]
