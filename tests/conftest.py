import pytest

from tera import Interpreter, UnitTable, reset_config


@pytest.fixture(scope="session")
def table():
    return UnitTable()


@pytest.fixture(autouse=True)
def _default_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def output():
    return []


@pytest.fixture
def interp(table, output):
    return Interpreter(table, sink=output.append)
