"""
Tests for the profile store: upsert-merge, corrupt data handling, card-level
edits and backup / restore.
"""

import base64
import json
from datetime import datetime, timedelta, UTC

import pytest

from valuation.account_proto import UserAccountMessage
from valuation.errors import BackupRestoreError, ProfileDecodeError, ProfileValidationError
from valuation.models import (
    CreditFrequency,
    CustomAdjustment,
    CustomValue,
    UserAccountData,
    UserCardValuation,
    ValuationProfile,
)
from valuation.profile_store import (
    CORRUPTED_BACKUP_FORMAT_VERSION,
    STORAGE_KEY,
    ProfileStore,
)
from valuation.storage import InMemoryStorage, JsonFileStorage, decode_account, encode_account

T0 = datetime(2025, 1, 15, 9, 30, tzinfo=UTC)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(storage, clock):
    return ProfileStore(storage, clock=clock)


def _valuation(cents: int = 1000) -> UserCardValuation:
    return UserCardValuation(credit_valuations={"credit": CustomValue(cents=cents)})


class TestCodec:
    def test_encoded_blob_decodes_to_same_account(self):
        account = UserAccountData(
            profiles={
                "p": ValuationProfile(
                    profile_id="p",
                    card_valuations={
                        "card": UserCardValuation(
                            credit_valuations={"credit": CustomValue(cents=0, explanation="never used")},
                            other_benefit_valuations={"lounge": CustomValue(proportion=0.25)},
                            custom_adjustments=[
                                CustomAdjustment(
                                    custom_adjustment_id="adj-1",
                                    description="Annual bonus",
                                    value_cents=-500,
                                    frequency=CreditFrequency.MONTHLY,
                                )
                            ],
                        )
                    },
                    created_at=T0,
                    updated_at=T0 + timedelta(microseconds=250),
                )
            },
            active_profile_id="p",
        )
        assert decode_account(encode_account(account)) == account

    def test_unset_and_zero_stay_distinct(self):
        account = UserAccountData(
            profiles={"p": ValuationProfile(profile_id="p", card_valuations={"card": _valuation(0)})}
        )

        decoded = decode_account(encode_account(account))

        value = decoded.profiles["p"].card_valuations["card"].credit_valuations["credit"]
        assert value.cents == 0
        assert value.proportion is None
        assert value.explanation is None

    def test_blob_is_a_userprofile_message(self):
        account = UserAccountData(profiles={"p": ValuationProfile(profile_id="p")}, active_profile_id="p")

        message = UserAccountMessage()
        message.ParseFromString(base64.b64decode(encode_account(account)))

        assert message.DESCRIPTOR.full_name == "userprofile.v1.UserAccountData"
        assert message.active_profile_id == "p"
        assert list(message.profiles) == ["p"]

    def test_unknown_fields_are_ignored(self):
        """A blob written by a newer version carries a field this one does not know."""
        # Arrange: field 99, varint 1, appended to a valid message
        account = UserAccountData(profiles={"p": ValuationProfile(profile_id="p")}, active_profile_id="p")
        payload = base64.b64decode(encode_account(account)) + b"\x98\x06\x01"

        # Act
        decoded = decode_account(base64.b64encode(payload).decode())

        # Assert
        assert decoded == account

    def test_unknown_frequency_falls_back_to_unspecified(self):
        message = UserAccountMessage()
        adjustment = message.profiles["p"].card_valuations["card"].custom_adjustments.add()
        adjustment.value_cents = 100
        adjustment.frequency = "fortnightly"

        decoded = decode_account(base64.b64encode(message.SerializeToString()).decode())

        stored = decoded.profiles["p"].card_valuations["card"].custom_adjustments[0]
        assert stored.frequency == CreditFrequency.UNSPECIFIED
        assert stored.value_cents == 100

    @pytest.mark.parametrize(
        "blob",
        [
            "not base64!!",
            base64.b64encode(b"\xff").decode(),
            base64.b64encode(b"\x0a\x05ab").decode(),
        ],
    )
    def test_corrupt_blob_raises(self, blob):
        with pytest.raises(ProfileDecodeError):
            decode_account(blob)


class TestUpsert:
    """Tests for the upsert-merge contract."""

    def test_empty_id_is_rejected_without_writing(self, store, storage):
        with pytest.raises(ProfileValidationError):
            store.upsert(ValuationProfile(profile_id="   "))
        assert storage.items == {}

    def test_first_save_sets_timestamps_and_active_id(self, store):
        # Act
        saved = store.upsert(ValuationProfile(profile_id="p", card_valuations={"card": _valuation()}))

        # Assert
        assert saved.created_at == T0
        assert saved.updated_at == T0
        account = store.load_account()
        assert account.active_profile_id == "p"
        assert account.profiles["p"] == saved

    def test_second_save_keeps_created_at(self, store, clock):
        store.upsert(ValuationProfile(profile_id="p"))
        clock.advance(days=1)

        saved = store.upsert(ValuationProfile(profile_id="p", created_at=T0 + timedelta(days=30)))

        assert saved.created_at == T0
        assert saved.updated_at == T0 + timedelta(days=1)

    def test_incoming_created_at_used_on_first_save(self, store):
        earlier = T0 - timedelta(days=10)
        saved = store.upsert(ValuationProfile(profile_id="p", created_at=earlier))
        assert saved.created_at == earlier

    def test_unset_fields_keep_stored_values(self, store):
        store.upsert(ValuationProfile(profile_id="p", card_valuations={"card": _valuation()}))

        saved = store.upsert(ValuationProfile(profile_id="p"))

        assert saved.card_valuations == {"card": _valuation()}

    def test_set_fields_replace_stored_values(self, store):
        store.upsert(ValuationProfile(profile_id="p", card_valuations={"card": _valuation()}))

        saved = store.upsert(ValuationProfile(profile_id="p", card_valuations={}))

        assert saved.card_valuations == {}

    def test_other_profiles_untouched(self, store):
        store.upsert(ValuationProfile(profile_id="a", card_valuations={"card": _valuation(1)}))
        store.upsert(ValuationProfile(profile_id="b", card_valuations={"card": _valuation(2)}))

        account = store.load_account()
        assert set(account.profiles) == {"a", "b"}
        assert account.profiles["a"].card_valuations["card"] == _valuation(1)
        assert account.active_profile_id == "b"

    def test_containers_filled_after_construction_are_saved(self, store):
        """A profile whose card map is filled in place still overlays the stored one."""
        # Arrange
        store.upsert(ValuationProfile(profile_id="p", card_valuations={"old": _valuation(1)}))
        profile = ValuationProfile(profile_id="p")
        profile.card_valuations["amex"] = _valuation(2)

        # Act
        saved = store.upsert(profile)

        # Assert
        assert saved.card_valuations == {"amex": _valuation(2)}
        assert store.load_active().card_valuations == {"amex": _valuation(2)}

    def test_empty_id_leaves_stored_blob_byte_identical(self, store, storage):
        store.upsert(ValuationProfile(profile_id="p", card_valuations={"card": _valuation()}))
        before = storage.get_item(STORAGE_KEY)

        with pytest.raises(ProfileValidationError):
            store.upsert(ValuationProfile(profile_id=""))

        assert storage.get_item(STORAGE_KEY) == before

    def test_corrupt_storage_is_not_overwritten(self, store, storage):
        storage.set_item(STORAGE_KEY, "garbage")
        with pytest.raises(ProfileDecodeError):
            store.upsert(ValuationProfile(profile_id="p"))
        assert storage.get_item(STORAGE_KEY) == "garbage"


class TestLoadActive:
    def test_nothing_stored(self, store):
        assert store.load_active() is None

    def test_returns_saved_profile(self, store):
        saved = store.upsert(ValuationProfile(profile_id="p"))
        assert store.load_active() == saved

    def test_first_profile_is_returned(self, store):
        store.upsert(ValuationProfile(profile_id="first"))
        store.upsert(ValuationProfile(profile_id="second"))
        assert store.load_active().profile_id == "first"

    def test_corrupt_data_is_purged(self, store, storage):
        storage.set_item(STORAGE_KEY, "garbage")
        assert store.load_active() is None
        assert storage.get_item(STORAGE_KEY) is None

    def test_load_after_purge_finds_nothing(self, store, storage):
        storage.set_item(STORAGE_KEY, "garbage")
        store.load_active()

        assert store.load_active() is None
        assert storage.items == {}


class TestCardEdits:
    def test_valuation_mutated_after_construction_is_saved(self, store):
        """Overrides added to an existing valuation object are written, not dropped."""
        # Arrange
        valuation = UserCardValuation()
        valuation.credit_valuations["saks"] = CustomValue(cents=10000)
        valuation.custom_adjustments.append(CustomAdjustment(description="Lounge", value_cents=1000))

        # Act
        store.save_card_valuation("p", "amex", valuation)

        # Assert
        stored = store.load_active().card_valuations["amex"]
        assert stored.credit_valuations == {"saks": CustomValue(cents=10000)}
        assert [a.description for a in stored.custom_adjustments] == ["Lounge"]

    def test_saved_valuation_is_a_copy(self, store):
        valuation = _valuation(1)
        store.save_card_valuation("p", "card", valuation)

        valuation.credit_valuations["credit"].cents = 999

        assert store.load_active().card_valuations["card"] == _valuation(1)

    def test_save_card_valuation_keeps_other_cards(self, store):
        store.save_card_valuation("p", "card-a", _valuation(1))
        profile = store.save_card_valuation("p", "card-b", _valuation(2))

        assert profile.card_valuations == {"card-a": _valuation(1), "card-b": _valuation(2)}

    def test_save_card_valuation_requires_profile_id(self, store):
        with pytest.raises(ProfileValidationError):
            store.save_card_valuation("", "card", _valuation())

    def test_clear_card_valuation(self, store):
        store.save_card_valuation("p", "card-a", _valuation(1))
        store.save_card_valuation("p", "card-b", _valuation(2))

        profile = store.clear_card_valuation("card-a")

        assert set(profile.card_valuations) == {"card-b"}
        assert set(store.load_active().card_valuations) == {"card-b"}

    def test_clear_card_without_profile(self, store):
        assert store.clear_card_valuation("card") is None

    def test_clear_all(self, store, storage):
        store.save_card_valuation("p", "card", _valuation())
        store.clear_all()
        assert storage.items == {}


class TestBackupRestore:
    def test_export_nothing_stored(self, store):
        assert store.export_backup() is None

    def test_export_document_shape(self, store):
        store.save_card_valuation(
            "p",
            "card",
            UserCardValuation(custom_adjustments=[CustomAdjustment(description="Lounge snacks", value_cents=500)]),
        )

        backup = store.export_backup()

        assert backup.filename == "card-verdict-backup-2025-01-15.json"
        document = json.loads(backup.content)
        assert document["metadata"]["fileFormatVersion"] == "1.0"
        assert document["metadata"]["appName"] == "CardVerdict"
        assert document["backupData"] == store.raw_blob()
        assert document["readableData"]["profiles"]["p"]["card_valuations"]["card"]["custom_adjustments"][0][
            "description"
        ] == "Lounge snacks"

    def test_export_of_corrupt_data_returns_none(self, store, storage):
        storage.set_item(STORAGE_KEY, "garbage")
        assert store.export_backup() is None

    def test_emergency_backup_wraps_raw_blob(self, store, storage):
        storage.set_item(STORAGE_KEY, "garbage")

        backup = store.emergency_backup()

        document = json.loads(backup.content)
        assert document["metadata"]["fileFormatVersion"] == CORRUPTED_BACKUP_FORMAT_VERSION
        assert document["readableData"] is None
        assert document["backupData"] == "garbage"

    def test_restore_replaces_stored_account(self, store, storage):
        store.save_card_valuation("p", "card", _valuation(1))
        content = store.export_backup().content
        store.clear_all()

        account = store.restore_backup(content)

        assert account.profiles["p"].card_valuations["card"] == _valuation(1)
        assert store.load_active().profile_id == "p"

    def test_restore_falls_back_to_readable_data(self, store):
        readable = UserAccountData(profiles={"p": ValuationProfile(profile_id="p")}).model_dump(mode="json")
        account = store.restore_backup(json.dumps({"metadata": {}, "readableData": readable}))
        assert set(account.profiles) == {"p"}

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            "[]",
            json.dumps({"metadata": {}}),
            json.dumps({"backupData": "garbage"}),
            json.dumps({"readableData": {"profiles": 3}}),
        ],
    )
    def test_invalid_backup_leaves_state_untouched(self, store, storage, content):
        store.save_card_valuation("p", "card", _valuation())
        before = storage.get_item(STORAGE_KEY)

        with pytest.raises(BackupRestoreError):
            store.restore_backup(content)

        assert storage.get_item(STORAGE_KEY) == before


class TestJsonFileStorage:
    def test_round_trip_and_remove(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "data.json")
        assert storage.get_item("k") is None

        storage.set_item("k", "v")
        assert JsonFileStorage(tmp_path / "nested" / "data.json").get_item("k") == "v"

        storage.remove_item("k")
        storage.remove_item("missing")
        assert storage.get_item("k") is None

    def test_damaged_file_reads_as_empty(self, tmp_path, clock):
        # Arrange
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        store = ProfileStore(JsonFileStorage(path), clock=clock)

        # Act / Assert
        assert store.raw_blob() is None
        assert store.load_active() is None

    def test_damaged_file_is_replaced_on_save(self, tmp_path, clock):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        store = ProfileStore(JsonFileStorage(path), clock=clock)

        store.save_card_valuation("p", "card", _valuation())

        assert set(json.loads(path.read_text(encoding="utf-8"))) == {STORAGE_KEY}
        assert store.load_active().card_valuations == {"card": _valuation()}
