import importlib
import random

import pytest


def import_required(module_name: str):
    """
    Import a project module with a clearer failure message than ModuleNotFoundError.
    """
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        pytest.fail(
            f"Required module '{module_name}.py' could not be imported. "
            f"Original error: {e}"
        )


@pytest.fixture
def maze_module():
    return import_required("maze")


@pytest.fixture
def solver_module():
    return import_required("solver")


@pytest.fixture
def db_module():
    return import_required("db")


@pytest.fixture
def main_module():
    return import_required("main")


@pytest.fixture
def json_repo(tmp_path, db_module):
    return db_module.JsonScoreRepository(tmp_path / "scores.json")


@pytest.fixture
def sqlite_repo(tmp_path, db_module):
    repo = db_module.SqliteScoreRepository(tmp_path / "scores.db")
    yield repo
    repo.close()


@pytest.fixture(params=["json", "sqlite"])
def repo(request, json_repo, sqlite_repo):
    return json_repo if request.param == "json" else sqlite_repo


class FirstChoiceRandom(random.Random):
    """Scripted RNG: always takes the first candidate offered."""

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def first_choice_rng():
    return FirstChoiceRandom()


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
