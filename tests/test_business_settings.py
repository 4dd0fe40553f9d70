"""Business rules storage and the dispatch config snapshot."""
import pytest
from sqlalchemy.orm import sessionmaker

from salon_crm.backend.database import Base, get_test_engine
from salon_crm.backend.models.app_setting import AppSetting
from salon_crm.backend.services import business_settings
from salon_crm.backend.services.business_settings import (
    DEFAULTS,
    KEY,
    get_business_settings,
    load_dispatch_config,
    put_business_settings,
)


@pytest.fixture
def test_db_session():
    engine = get_test_engine()
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_defaults_when_not_configured(test_db_session):
    assert get_business_settings(test_db_session) == DEFAULTS
    assert get_business_settings(test_db_session)["feedback_delay_minutes"] == 30


def test_stored_values_merge_over_defaults(test_db_session):
    test_db_session.add(AppSetting(key=KEY, value_json={"feedback_delay_minutes": 45, "unknown": 1}))
    test_db_session.commit()
    current = get_business_settings(test_db_session)
    assert current["feedback_delay_minutes"] == 45
    assert current["low_rating_threshold"] == DEFAULTS["low_rating_threshold"]
    assert "unknown" not in current


def test_malformed_value_falls_back_to_defaults(test_db_session):
    test_db_session.add(AppSetting(key=KEY, value_json=["not", "a", "dict"]))
    test_db_session.commit()
    assert get_business_settings(test_db_session) == DEFAULTS


def test_put_validates_and_persists(test_db_session):
    saved = put_business_settings(test_db_session, {"feedback_delay_minutes": "15", "default_booking_url": " https://b "})
    assert saved["feedback_delay_minutes"] == 15
    assert saved["default_booking_url"] == "https://b"
    assert get_business_settings(test_db_session)["feedback_delay_minutes"] == 15


@pytest.mark.parametrize(
    "payload",
    [
        {"feedback_delay_minutes": -1},
        {"low_rating_threshold": 11},
        {"promoter_threshold": -2},
        {"winback_inactive_days": 0},
        {"average_ticket_price": -5},
        {"feedback_delay_minutes": "soon"},
    ],
)
def test_put_rejects_invalid_values(test_db_session, payload):
    with pytest.raises(ValueError):
        put_business_settings(test_db_session, payload)
    assert get_business_settings(test_db_session) == DEFAULTS


def test_dispatch_config_snapshot(test_db_session, monkeypatch):
    stub_settings = type("S", (), {
        "public_base_url": "https://salon.example",
        "salon_name": "G Nail Pines",
        "dispatch_batch_limit": 50,
    })()
    monkeypatch.setattr(business_settings, "get_settings", lambda: stub_settings)
    put_business_settings(test_db_session, {"feedback_delay_minutes": 10, "default_booking_url": "https://b.example"})

    config = load_dispatch_config(test_db_session)
    assert config.feedback_delay_minutes == 10
    assert config.public_base_url == "https://salon.example"
    assert config.default_booking_url == "https://b.example"
    assert config.batch_limit == 50
