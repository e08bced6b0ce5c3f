# type: ignore
import pytest

import unit_utils


@pytest.fixture
def program_file(tmp_path):
    def write(source: str, name: str = 'program.tape'):
        path = tmp_path / name
        path.write_text(source)
        return path

    yield write


@pytest.fixture
def sample_program():
    def load(name: str) -> str:
        return unit_utils.load_file(f'testdata/programs/{name}.tape')

    yield load
