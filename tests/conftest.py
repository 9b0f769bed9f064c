import pytest

from engine.frames import Frame
from helpers import make_pattern, make_uniform


@pytest.fixture
def pattern_frame():
    return Frame(make_pattern(240, 320))


@pytest.fixture
def gray_frame():
    return Frame(make_uniform(240, 320, (130, 130, 130)))
