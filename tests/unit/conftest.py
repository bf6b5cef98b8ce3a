import os
import warnings


def pytest_sessionstart(session) -> None:
    if "LANGBASE_LOGGING" not in os.environ:
        os.environ["LANGBASE_LOGGING"] = "all=WARNING"

    # Silence common deprecation spam during unit tests.
    warnings.filterwarnings("ignore", category=DeprecationWarning)
    warnings.filterwarnings("ignore", category=PendingDeprecationWarning)
