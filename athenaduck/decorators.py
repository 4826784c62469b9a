from functools import wraps

from .patch import patch_athena


def mock_athena(func):
    """
    Decorator to run a function against the DuckDB-backed Athena double.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        with patch_athena():
            return func(*args, **kwargs)

    return wrapper
