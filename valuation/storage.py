"""
Key-value storage ports for the persisted account blob, plus the codec that
turns UserAccountData into the text stored there.

The wire form is the userprofile.v1.UserAccountData protocol buffer message
(see valuation.account_proto) wrapped in base64 so it can be stored as a
plain string. Fields are tagged by number and unknown tags are skipped on
read, so blobs written by newer versions still decode.
"""

import base64
import binascii
import json
import logging
import os
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Any, Optional, Protocol

from google.protobuf.message import DecodeError
from pydantic import ValidationError

from valuation.account_proto import UserAccountMessage
from valuation.errors import ProfileDecodeError
from valuation.models import (
    CreditFrequency,
    CustomAdjustment,
    CustomValue,
    UserAccountData,
    UserCardValuation,
    ValuationProfile,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class StoragePort(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    def remove_item(self, key: str) -> None:
        """Delete key; a missing key is not an error."""


class InMemoryStorage:
    """Process-local storage, used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """Storage slots kept in a single JSON object on disk."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as exc:
            # Unreadable file: behave as empty; the next write replaces it.
            logger.warning("Storage file %s is damaged and will be overwritten on the next save: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


# =============================================================================
# Codec: pydantic models <-> userprofile.v1 messages
# =============================================================================

def _set_timestamp(target, value: datetime) -> None:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    delta = value - _EPOCH
    target.seconds = delta.days * 86400 + delta.seconds
    target.nanos = delta.microseconds * 1000


def _read_timestamp(source) -> datetime:
    return _EPOCH + timedelta(seconds=source.seconds, microseconds=source.nanos // 1000)


def _set_custom_value(target, value: CustomValue) -> None:
    if value.cents is not None:
        target.cents = value.cents
    if value.proportion is not None:
        target.proportion = value.proportion
    if value.explanation is not None:
        target.explanation = value.explanation


def _read_custom_value(source) -> dict[str, Any]:
    return {
        name: getattr(source, name)
        for name in ("cents", "proportion", "explanation")
        if source.HasField(name)
    }


def _set_adjustment(target, adjustment: CustomAdjustment) -> None:
    if adjustment.custom_adjustment_id is not None:
        target.custom_adjustment_id = adjustment.custom_adjustment_id
    if adjustment.description is not None:
        target.description = adjustment.description
    target.value_cents = adjustment.value_cents
    target.frequency = adjustment.frequency.value


def _read_adjustment(source) -> dict[str, Any]:
    fields = {
        name: getattr(source, name)
        for name in ("custom_adjustment_id", "description", "value_cents")
        if source.HasField(name)
    }
    if source.HasField("frequency"):
        try:
            fields["frequency"] = CreditFrequency(source.frequency)
        except ValueError:
            # Written by a newer version with a frequency this one does not know.
            fields["frequency"] = CreditFrequency.UNSPECIFIED
    return fields


def _set_card_valuation(target, valuation: UserCardValuation) -> None:
    for credit_id, value in valuation.credit_valuations.items():
        _set_custom_value(target.credit_valuations[credit_id], value)
    for benefit_id, value in valuation.other_benefit_valuations.items():
        _set_custom_value(target.other_benefit_valuations[benefit_id], value)
    for adjustment in valuation.custom_adjustments:
        _set_adjustment(target.custom_adjustments.add(), adjustment)


def _read_card_valuation(source) -> dict[str, Any]:
    return {
        "credit_valuations": {k: _read_custom_value(v) for k, v in source.credit_valuations.items()},
        "other_benefit_valuations": {k: _read_custom_value(v) for k, v in source.other_benefit_valuations.items()},
        "custom_adjustments": [_read_adjustment(a) for a in source.custom_adjustments],
    }


def _set_profile(target, profile: ValuationProfile) -> None:
    target.profile_id = profile.profile_id
    for card_id, valuation in profile.card_valuations.items():
        _set_card_valuation(target.card_valuations[card_id], valuation)
    if profile.created_at is not None:
        _set_timestamp(target.created_at, profile.created_at)
    if profile.updated_at is not None:
        _set_timestamp(target.updated_at, profile.updated_at)


def _read_profile(source) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "profile_id": source.profile_id,
        "card_valuations": {k: _read_card_valuation(v) for k, v in source.card_valuations.items()},
    }
    for name in ("created_at", "updated_at"):
        if source.HasField(name):
            fields[name] = _read_timestamp(getattr(source, name))
    return fields


def to_message(account: UserAccountData):
    """Build the userprofile.v1.UserAccountData message for an account."""
    message = UserAccountMessage()
    for profile_id, profile in account.profiles.items():
        _set_profile(message.profiles[profile_id], profile)
    message.active_profile_id = account.active_profile_id
    return message


def from_message(message) -> UserAccountData:
    """
    Convert a parsed userprofile.v1.UserAccountData message.

    Raises:
        pydantic.ValidationError: If the message content breaks the model rules
    """
    return UserAccountData.model_validate(
        {
            "profiles": {k: _read_profile(v) for k, v in message.profiles.items()},
            "active_profile_id": message.active_profile_id,
        }
    )


def encode_account(account: UserAccountData) -> str:
    return base64.b64encode(to_message(account).SerializeToString()).decode("ascii")


def decode_account(blob: str) -> UserAccountData:
    """
    Decode a stored blob back into UserAccountData.

    Raises:
        ProfileDecodeError: If the blob is not valid base64, is not a
            well-formed UserAccountData message, or breaks the model rules
    """
    try:
        payload = base64.b64decode(blob.encode("ascii"), validate=True)
        message = UserAccountMessage()
        message.ParseFromString(payload)
        return from_message(message)
    except (binascii.Error, UnicodeError, DecodeError, ValueError, ValidationError) as exc:
        raise ProfileDecodeError(f"Stored account data could not be decoded: {exc}") from exc
