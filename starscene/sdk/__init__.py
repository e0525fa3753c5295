from .run import SessionRunResult, simulate_session

__all__ = ["SessionRunResult", "simulate_session"]
