from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest
from livestream_booking.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_default_term_is_the_booking_year() -> None:
    term = Settings().reservation_term()
    assert (term.start_at, term.end_at) == (1700874000, 1732496400)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "mysql+aiomysql://u:p@db:3306/x")
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    monkeypatch.setenv("ALLOW_UNCOVERED_RANGES", "1")
    monkeypatch.setenv("TERM_START_AT", "2024-01-01T00:00:00+00:00")
    monkeypatch.setenv("TERM_END_AT", "2024-02-01T00:00:00+00:00")

    settings = get_settings()

    assert settings.database_url == "mysql+aiomysql://u:p@db:3306/x"
    assert settings.auth_secret == "testsecret"
    assert settings.allow_uncovered_ranges is True
    assert settings.term_start_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert settings.reservation_term().end_at == 1706745600


def test_naive_term_bounds_fail_at_load(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TERM_START_AT", "2024-01-01T00:00:00")
    with pytest.raises(ValueError, match="UTC offset"):
        get_settings()


def test_inverted_term_is_rejected() -> None:
    with pytest.raises(ValueError, match="earlier than"):
        Settings(
            term_start_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
            term_end_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )


def test_default_fallback_icon_ships_with_the_package() -> None:
    icon = Path(Settings().fallback_icon_path)
    assert icon.is_absolute()
    assert icon.is_file()


def test_missing_fallback_icon_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="fallback icon not found"):
        Settings(fallback_icon_path=str(tmp_path / "missing.jpg"))
