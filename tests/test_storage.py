"""
test_storage.py — Tests for the in-memory contact / alert / settings store.

Covers:
    • Contact create defaults, lookup, partial update, delete
    • Active filtering and the first-match primary lookup
    • Alert create defaults and partial update
    • Settings singleton partial update
    • Default contact seeding
    • E.164 phone validation

Run with:
    pytest tests/test_storage.py -v
"""

from __future__ import annotations

import random

import pytest

from backend.app.safety.models import AlertStatus, DEFAULT_EMERGENCY_MESSAGE
from backend.app.safety.storage import DEFAULT_CONTACTS, MemStorage
from backend.app.safety.validation import is_e164, validate_e164


def _contact(
    name: str = "Ayesha",
    phone: str = "+923001234567",
    **extra,
) -> dict:
    return {"name": name, "phone": phone, **extra}


@pytest.fixture
def storage() -> MemStorage:
    return MemStorage()


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Contacts
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateContact:

    def test_defaults_applied(self, storage):
        contact = storage.create_emergency_contact(_contact())
        assert contact.id == 1
        assert contact.relationship is None
        assert contact.is_primary is False
        assert contact.is_active is True
        assert contact.created_at is not None

    def test_ids_are_monotonic(self, storage):
        ids = [storage.create_emergency_contact(_contact()).id for _ in range(3)]
        assert ids == [1, 2, 3]

    def test_ids_not_reused_after_delete(self, storage):
        first = storage.create_emergency_contact(_contact())
        storage.delete_emergency_contact(first.id)
        second = storage.create_emergency_contact(_contact())
        assert second.id == 2

    def test_explicit_inactive_is_kept(self, storage):
        contact = storage.create_emergency_contact(_contact(is_active=False))
        assert contact.is_active is False

    def test_to_dict_uses_wire_names(self, storage):
        data = storage.create_emergency_contact(
            _contact(relationship="Sister", is_primary=True)
        ).to_dict()
        assert data["isPrimary"] is True
        assert data["isActive"] is True
        assert data["relationship"] == "Sister"
        assert "createdAt" in data


class TestContactQueries:

    def test_get_by_id(self, storage):
        contact = storage.create_emergency_contact(_contact())
        assert storage.get_emergency_contact(contact.id) is contact

    def test_get_unknown_id(self, storage):
        assert storage.get_emergency_contact(99) is None

    def test_list_excludes_inactive(self, storage):
        storage.create_emergency_contact(_contact(name="A"))
        storage.create_emergency_contact(_contact(name="B", is_active=False))
        names = [c.name for c in storage.get_emergency_contacts()]
        assert names == ["A"]

    def test_primary_none_when_empty(self, storage):
        assert storage.get_primary_emergency_contact() is None

    def test_primary_first_match_in_insertion_order(self, storage):
        storage.create_emergency_contact(_contact(name="A", is_primary=False))
        b = storage.create_emergency_contact(_contact(name="B", is_primary=True))
        storage.create_emergency_contact(_contact(name="C", is_primary=True))
        assert storage.get_primary_emergency_contact().id == b.id

    def test_primary_skips_inactive(self, storage):
        storage.create_emergency_contact(_contact(name="A", is_primary=True, is_active=False))
        b = storage.create_emergency_contact(_contact(name="B", is_primary=True))
        assert storage.get_primary_emergency_contact() is b

    def test_list_never_exceeds_created_minus_deleted(self, storage):
        rng = random.Random(7)
        live = set()
        for _ in range(200):
            if live and rng.random() < 0.4:
                victim = rng.choice(sorted(live))
                assert storage.delete_emergency_contact(victim) is True
                live.discard(victim)
            else:
                contact = storage.create_emergency_contact(
                    _contact(is_active=rng.random() < 0.8)
                )
                live.add(contact.id)

            listed = storage.get_emergency_contacts()
            assert len(listed) <= len(live)
            assert all(c.is_active for c in listed)


class TestUpdateContact:

    def test_partial_merge(self, storage):
        contact = storage.create_emergency_contact(_contact(relationship="Friend"))
        updated = storage.update_emergency_contact(contact.id, {"name": "Sara"})
        assert updated.name == "Sara"
        assert updated.phone == contact.phone
        assert updated.relationship == "Friend"

    def test_update_visible_to_reads(self, storage):
        contact = storage.create_emergency_contact(_contact())
        storage.update_emergency_contact(contact.id, {"is_primary": True})
        assert storage.get_primary_emergency_contact().id == contact.id

    def test_unknown_id_returns_none(self, storage):
        assert storage.update_emergency_contact(42, {"name": "X"}) is None


class TestDeleteContact:

    def test_delete_existing(self, storage):
        contact = storage.create_emergency_contact(_contact())
        assert storage.delete_emergency_contact(contact.id) is True
        assert storage.get_emergency_contact(contact.id) is None

    def test_delete_missing(self, storage):
        assert storage.delete_emergency_contact(5) is False


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Alerts
# ═══════════════════════════════════════════════════════════════════════════

class TestAlerts:

    def test_create_defaults(self, storage):
        alert = storage.create_emergency_alert({})
        assert alert.id == 1
        assert alert.status == AlertStatus.ACTIVE.value
        assert alert.latitude is None
        assert alert.longitude is None
        assert alert.audio_recording_path is None
        assert alert.contacts_notified is None
        assert alert.timestamp is not None

    def test_create_with_fields(self, storage):
        alert = storage.create_emergency_alert({
            "latitude": "24.86",
            "longitude": "67.00",
            "contacts_notified": ["+923001234567"],
        })
        assert alert.has_location
        assert alert.contacts_notified == ["+923001234567"]

    def test_list_all_in_order(self, storage):
        storage.create_emergency_alert({})
        storage.create_emergency_alert({"status": "resolved"})
        statuses = [a.status for a in storage.get_emergency_alerts()]
        assert statuses == ["active", "resolved"]

    def test_empty_contacts_notified_kept(self, storage):
        alert = storage.create_emergency_alert({"contacts_notified": []})
        assert alert.contacts_notified == []
        assert alert.to_dict()["contactsNotified"] == []

    def test_status_is_free_form(self, storage):
        alert = storage.create_emergency_alert({"status": "escalated"})
        assert alert.status == "escalated"

    def test_partial_update(self, storage):
        alert = storage.create_emergency_alert({"latitude": "1", "longitude": "2"})
        updated = storage.update_emergency_alert(alert.id, {"status": "cancelled"})
        assert updated.status == "cancelled"
        assert updated.latitude == "1"

    def test_update_unknown(self, storage):
        assert storage.update_emergency_alert(3, {"status": "resolved"}) is None

    def test_to_dict(self, storage):
        data = storage.create_emergency_alert({"contacts_notified": ["+1555"]}).to_dict()
        assert data["contactsNotified"] == ["+1555"]
        assert data["audioRecordingPath"] is None
        assert data["status"] == "active"


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Settings
# ═══════════════════════════════════════════════════════════════════════════

class TestSettings:

    def test_defaults(self, storage):
        s = storage.get_app_settings()
        assert s.id == 1
        assert s.shake_detection_enabled
        assert s.audio_recording_enabled
        assert s.flashlight_enabled
        assert s.siren_enabled
        assert s.emergency_message == DEFAULT_EMERGENCY_MESSAGE

    def test_partial_update_leaves_other_fields(self, storage):
        before = storage.get_app_settings().to_dict()
        storage.update_app_settings({"siren_enabled": False})
        after = storage.get_app_settings().to_dict()

        assert after["sirenEnabled"] is False
        for key in before:
            if key != "sirenEnabled":
                assert after[key] == before[key]

    def test_update_returns_new_value(self, storage):
        s = storage.update_app_settings({"emergency_message": "Help me"})
        assert s.emergency_message == "Help me"


# ═══════════════════════════════════════════════════════════════════════════
# Section 4: Seeding & stats
# ═══════════════════════════════════════════════════════════════════════════

class TestSeeding:

    def test_unseeded_store_is_empty(self, storage):
        assert storage.get_emergency_contacts() == []

    def test_seeded_store(self):
        seeded = MemStorage(seed_default_contacts=True)
        contacts = seeded.get_emergency_contacts()
        assert len(contacts) == len(DEFAULT_CONTACTS) == 3
        assert seeded.get_primary_emergency_contact().phone == "+923001234567"

    def test_stats(self):
        seeded = MemStorage(seed_default_contacts=True)
        seeded.create_emergency_alert({})
        assert seeded.stats() == {"contacts": 3, "active_contacts": 3, "alerts": 1}


# ═══════════════════════════════════════════════════════════════════════════
# Section 5: Phone validation
# ═══════════════════════════════════════════════════════════════════════════

class TestE164:

    @pytest.mark.parametrize("phone", ["+92123456789", "+15553456789", "+12"])
    def test_valid(self, phone):
        assert is_e164(phone)
        assert validate_e164(phone) == phone

    @pytest.mark.parametrize("phone", [
        "0123456789",           # no leading +
        "+0123456789",          # leading 0
        "+1",                   # too short
        "+1234567890123456",    # 16 digits
        "+92 300 1234567",      # spaces
        "+92123456789\n",       # trailing newline
        "",
    ])
    def test_invalid(self, phone):
        assert not is_e164(phone)
        with pytest.raises(ValueError, match="E.164"):
            validate_e164(phone)
