import pytest
from pydantic import ValidationError

from screen_pilot.config import Settings


def test_typing_delay_must_stay_positive():
    with pytest.raises(ValidationError):
        Settings(typing_delay_ms=0, typing_jitter_ms=0)
    with pytest.raises(ValidationError):
        Settings(typing_jitter_ms=-1)


def test_defaults_pace_like_a_person():
    config = Settings(_env_file=None)

    assert config.typing_delay_ms == 100
    assert config.typing_jitter_ms == 50
    assert config.cursor_speed == 8.0
