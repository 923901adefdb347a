from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from slotbook.exceptions import InfrastructureError, NotFoundError, ValidationError
from slotbook.models import STATUS_CANCELLED, STATUS_CONFIRMED, Booking

from .conftest import NOW


def add_booking(db, provider, time, status=STATUS_CONFIRMED, service=None, duration_min=None, day=None):
    booking = Booking(
        provider_id=provider.id,
        service_id=service.id if service else None,
        client_name="Existing Client",
        client_phone="+491701234567",
        date=day or date(2026, 3, 3),
        time=time,
        duration_min=duration_min,
        status=status,
    )
    db.add(booking)
    db.commit()
    return booking


def test_available_slots_for_hour_service(availability_service, provider):
    day, duration, slots = availability_service.get_available_slots(provider.id, "2026-03-03", 60)

    assert day == date(2026, 3, 3)
    assert duration == 60
    assert slots == ["09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]


def test_available_slots_exclude_active_bookings_only(db, availability_service, provider, haircut):
    add_booking(db, provider, "10:00", service=haircut)
    add_booking(db, provider, "14:00", status=STATUS_CANCELLED, service=haircut)

    _, _, slots = availability_service.get_available_slots(provider.id, "2026-03-03", 60)

    assert "10:00" not in slots
    assert "14:00" in slots
    assert "09:00" in slots
    assert "11:00" in slots


def test_busy_duration_uses_the_linked_service(db, availability_service, provider, coloring):
    add_booking(db, provider, "09:00", service=coloring, duration_min=30)

    _, _, slots = availability_service.get_available_slots(provider.id, "2026-03-03", 30)

    # Coloring lasts 90 minutes, the snapshot is only used without a service
    assert slots[0] == "10:30"


def test_busy_duration_falls_back_to_snapshot_then_default(db, availability_service, provider):
    add_booking(db, provider, "09:00", duration_min=30)
    add_booking(db, provider, "12:00")

    _, _, slots = availability_service.get_available_slots(provider.id, "2026-03-03", 30)

    assert slots[0] == "09:30"
    assert "12:00" not in slots
    assert "12:30" not in slots
    assert "13:00" in slots


def test_requery_is_idempotent(db, availability_service, provider, haircut):
    add_booking(db, provider, "11:00", service=haircut)

    first = availability_service.get_available_slots(provider.id, "2026-03-03", 45)
    second = availability_service.get_available_slots(provider.id, "2026-03-03", 45)

    assert first == second


def test_closed_day_returns_empty_list(availability_service, provider):
    _, _, slots = availability_service.get_available_slots(provider.id, "2026-03-07", 60)

    assert slots == []


def test_unconfigured_provider_returns_empty_list(availability_service, unconfigured_provider):
    for day in ("2026-03-02", "2026-03-03", "2026-03-07"):
        _, _, slots = availability_service.get_available_slots(unconfigured_provider.id, day, 60)
        assert slots == []


@pytest.mark.parametrize("value", [None, "", "03/03/2026", "2026-02-30"])
def test_malformed_date_is_a_validation_error(availability_service, provider, value):
    with pytest.raises(ValidationError):
        availability_service.get_available_slots(provider.id, value, 60)


def test_unknown_provider_is_not_found(availability_service):
    with pytest.raises(NotFoundError):
        availability_service.get_available_slots(999, "2026-03-03", 60)


def test_quick_slots_for_configured_provider(availability_service, provider):
    result = availability_service.get_quick_slots(provider.id, now=NOW)

    assert result.has_schedule
    assert [s.time for s in result.morning] == ["09:00", "09:30", "10:00"]
    assert [s.time for s in result.evening] == ["12:00", "12:30", "13:00"]


def test_quick_slots_skip_busy_intervals(db, availability_service, provider, haircut):
    add_booking(db, provider, "09:00", service=haircut, day=date(2026, 3, 2))

    result = availability_service.get_quick_slots(provider.id, now=NOW)

    assert [s.time for s in result.morning] == ["10:00", "10:30", "11:00"]


def test_quick_slots_without_schedule(availability_service, unconfigured_provider):
    result = availability_service.get_quick_slots(unconfigured_provider.id, now=NOW)

    assert not result.has_schedule
    assert result.morning == []
    assert result.evening == []


def test_quick_slots_for_unknown_provider(availability_service):
    assert not availability_service.get_quick_slots(999, now=NOW).has_schedule


def test_update_schedule_normalizes_days(db, availability_service, unconfigured_provider):
    provider = availability_service.update_schedule(
        unconfigured_provider.id, "08:00", "12:00", [3, 1, 1, 9]
    )

    assert provider.schedule == {"workingDays": [1, 3], "startTime": "08:00", "endTime": "12:00"}
    _, _, slots = availability_service.get_available_slots(provider.id, "2026-03-02", 120)
    assert slots == ["08:00", "10:00"]


@pytest.mark.parametrize(
    "start, end",
    [("18:00", "09:00"), ("09:00", "09:00"), ("9:00", "17:00"), (None, "17:00")],
)
def test_update_schedule_rejects_bad_hours(availability_service, provider, start, end):
    with pytest.raises(ValidationError):
        availability_service.update_schedule(provider.id, start, end, [1, 2])


def disk_failure(*args, **kwargs):
    raise OperationalError("SELECT bookings", {}, Exception("disk I/O error"))


def test_slot_lookup_storage_failure_is_infrastructure_error(availability_service, provider, monkeypatch):
    monkeypatch.setattr(availability_service.repo, "list_busy_bookings", disk_failure)

    with pytest.raises(InfrastructureError) as exc_info:
        availability_service.get_available_slots(provider.id, "2026-03-03", 60)

    assert not exc_info.value.retryable


def test_quick_slots_storage_failure_is_infrastructure_error(availability_service, provider, monkeypatch):
    monkeypatch.setattr(availability_service.repo, "list_busy_bookings_by_date", disk_failure)

    with pytest.raises(InfrastructureError):
        availability_service.get_quick_slots(provider.id)


def test_update_schedule_storage_failure_is_infrastructure_error(availability_service, provider, monkeypatch):
    monkeypatch.setattr(availability_service.repo, "update_schedule", disk_failure)

    with pytest.raises(InfrastructureError):
        availability_service.update_schedule(provider.id, "09:00", "17:00", [1, 2])
