from tests.test_db import store  # noqa: F401
