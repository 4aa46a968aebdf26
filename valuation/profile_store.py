"""
Profile store: upsert-merge and load of the user's valuation profiles.

All profiles live in one UserAccountData blob under a fixed storage key.
Every write is a plain read-modify-write of that blob with no locking; when
two writers race, the later write wins.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Callable, Optional

from pydantic import ValidationError

from valuation.errors import BackupRestoreError, ProfileDecodeError, ProfileValidationError
from valuation.models import UserAccountData, UserCardValuation, ValuationProfile
from valuation.storage import StoragePort, decode_account, encode_account

logger = logging.getLogger(__name__)


STORAGE_KEY = "userAccountData"
APP_NAME = "CardVerdict"
BACKUP_FORMAT_VERSION = "1.0"
CORRUPTED_BACKUP_FORMAT_VERSION = "1.0-corrupted"


def utc_now() -> datetime:
    return datetime.now(UTC)


def _present_fields(profile: ValuationProfile) -> dict[str, Any]:
    """
    Top-level fields of an incoming profile that overlay the stored one.

    A field counts as present when it was passed explicitly or when it no
    longer equals its default, which covers containers filled in place after
    construction. Values are fully dumped, nested content included.
    """
    dumped = profile.model_dump()
    return {
        name: dumped[name]
        for name, info in ValuationProfile.model_fields.items()
        if name in profile.model_fields_set
        or getattr(profile, name) != info.get_default(call_default_factory=True)
    }


@dataclass
class BackupFile:
    filename: str
    content: str


class ProfileStore:
    """
    Reads and writes ValuationProfiles through an injected StoragePort.

    Args:
        storage: Key-value storage holding the encoded account blob
        key: Storage key of the blob
        clock: Source of "now" for created_at/updated_at
    """

    def __init__(
        self,
        storage: StoragePort,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.storage = storage
        self.key = key
        self.clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def raw_blob(self) -> Optional[str]:
        return self.storage.get_item(self.key) or None

    def load_account(self) -> Optional[UserAccountData]:
        """
        Decode the stored account.

        Returns:
            UserAccountData, or None if nothing is stored

        Raises:
            ProfileDecodeError: If the stored blob is corrupt
        """
        blob = self.raw_blob()
        if blob is None:
            return None
        return decode_account(blob)

    def _write_account(self, account: UserAccountData) -> None:
        self.storage.set_item(self.key, encode_account(account))

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------
    def upsert(self, profile: ValuationProfile) -> ValuationProfile:
        """
        Merge a profile into the stored account and make it active.

        Top-level fields present on the incoming profile replace the stored
        ones wholesale; absent fields keep their stored values.
        updated_at is always set to now; created_at keeps the stored value,
        else the incoming value, else now.

        Args:
            profile: Profile to save; profile_id is required

        Returns:
            The merged profile as written

        Raises:
            ProfileValidationError: If profile_id is empty (nothing is written)
            ProfileDecodeError: If the stored blob is corrupt (nothing is written)
        """
        if not profile.profile_id:
            logger.error("Cannot save a valuation profile without a profile_id.")
            raise ProfileValidationError("profile_id is required to save a valuation profile.")

        try:
            account = self.load_account() or UserAccountData()
        except ProfileDecodeError:
            logger.error("Failed to save valuation profile %r: stored data is corrupt.", profile.profile_id)
            raise

        now = self.clock()
        existing = account.profiles.get(profile.profile_id)

        merged_fields: dict[str, Any] = existing.model_dump() if existing else {}
        merged_fields.update(_present_fields(profile))
        merged_fields["updated_at"] = now
        merged_fields["created_at"] = (
            (existing.created_at if existing else None) or profile.created_at or now
        )
        merged = ValuationProfile.model_validate(merged_fields)

        account.profiles[profile.profile_id] = merged
        account.active_profile_id = profile.profile_id
        self._write_account(account)

        logger.info("Saved valuation profile %r.", profile.profile_id)
        return merged

    def load_active(self) -> Optional[ValuationProfile]:
        """
        Load the profile to display.

        Returns the first enumerated profile rather than the one named by
        active_profile_id. A corrupt blob is purged from storage.

        Returns:
            A ValuationProfile, or None if there is no usable data
        """
        try:
            account = self.load_account()
        except ProfileDecodeError as exc:
            logger.warning("Failed to load valuation profile; clearing stored data. %s", exc)
            self.storage.remove_item(self.key)
            return None

        if account is None or not account.profiles:
            return None
        # TODO: honor account.active_profile_id once more than one profile can be created.
        return next(iter(account.profiles.values()))

    # ------------------------------------------------------------------
    # Card-level edits
    # ------------------------------------------------------------------
    def save_card_valuation(
        self, profile_id: str, card_id: str, valuation: UserCardValuation
    ) -> ValuationProfile:
        """
        Replace one card's valuation in a profile and save the profile.

        Other cards' valuations in the same profile are kept.

        Raises:
            ProfileValidationError: If profile_id is empty
            ProfileDecodeError: If the stored blob is corrupt
        """
        if not profile_id.strip():
            raise ProfileValidationError("profile_id is required to save a valuation profile.")
        account = self.load_account()
        existing = account.profiles.get(profile_id.strip()) if account else None
        card_valuations = dict(existing.card_valuations) if existing else {}
        card_valuations[card_id] = valuation.model_copy(deep=True)
        return self.upsert(ValuationProfile(profile_id=profile_id, card_valuations=card_valuations))

    def clear_card_valuation(self, card_id: str) -> Optional[ValuationProfile]:
        """
        Remove all of one card's overrides from the active profile.

        Returns:
            The saved profile, or None if there is no active profile
        """
        active = self.load_active()
        if active is None:
            return None
        card_valuations = {k: v for k, v in active.card_valuations.items() if k != card_id}
        return self.upsert(ValuationProfile(profile_id=active.profile_id, card_valuations=card_valuations))

    def clear_all(self) -> None:
        self.storage.remove_item(self.key)
        logger.info("Cleared all stored valuation data.")

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------
    def _backup_document(self, version: str, readable: Optional[dict], blob: str) -> str:
        document = {
            "metadata": {
                "fileFormatVersion": version,
                "appName": APP_NAME,
                "exportDate": self.clock().isoformat(),
            },
            "readableData": readable,
            "backupData": blob,
        }
        return json.dumps(document, indent=2)

    def export_backup(self) -> Optional[BackupFile]:
        """
        Package the stored account as a JSON backup document.

        Returns:
            BackupFile, or None if nothing is stored or the data is corrupt
        """
        blob = self.raw_blob()
        if blob is None:
            return None
        try:
            account = decode_account(blob)
        except ProfileDecodeError as exc:
            logger.warning("Cannot export backup of corrupt data: %s", exc)
            return None

        readable = account.model_dump(mode="json", exclude_none=True)
        filename = f"card-verdict-backup-{self.clock().strftime('%Y-%m-%d')}.json"
        return BackupFile(filename=filename, content=self._backup_document(BACKUP_FORMAT_VERSION, readable, blob))

    def emergency_backup(self) -> Optional[BackupFile]:
        """Wrap the stored blob as-is, without decoding, for corrupt data rescue."""
        blob = self.raw_blob()
        if blob is None:
            return None
        return BackupFile(
            filename="card-verdict-EMERGENCY-backup.json",
            content=self._backup_document(CORRUPTED_BACKUP_FORMAT_VERSION, None, blob),
        )

    def restore_backup(self, content: str) -> UserAccountData:
        """
        Replace the stored account with the contents of a backup document.

        backupData is preferred; readableData is used when backupData is
        missing. The document is fully decoded before anything is written.

        Raises:
            BackupRestoreError: If the document is not a usable backup
        """
        try:
            document = json.loads(content)
        except ValueError as exc:
            raise BackupRestoreError("Backup file is not valid JSON.") from exc
        if not isinstance(document, dict):
            raise BackupRestoreError("Backup file has an unexpected format.")

        blob = document.get("backupData")
        readable = document.get("readableData")
        try:
            if isinstance(blob, str) and blob:
                account = decode_account(blob)
            elif isinstance(readable, dict):
                account = UserAccountData.model_validate(readable)
            else:
                raise BackupRestoreError("Backup file contains no account data.")
        except (ProfileDecodeError, ValidationError) as exc:
            raise BackupRestoreError(f"Backup data is corrupt: {exc}") from exc

        self._write_account(account)
        logger.info("Restored %d valuation profile(s) from backup.", len(account.profiles))
        return account
