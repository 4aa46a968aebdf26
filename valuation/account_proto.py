"""
Protocol buffer schema of the persisted account blob (package userprofile.v1).

The descriptors are assembled at import time and registered in a private
pool, so no generated _pb2 module is needed. Field numbers are the wire
contract: never renumber or reuse them, only add new ones.

    message Timestamp         { int64 seconds = 1; int32 nanos = 2; }
    message CustomValue       { int64 cents = 1; double proportion = 2; string explanation = 3; }
    message CustomAdjustment  { string custom_adjustment_id = 1; string description = 2;
                                int64 value_cents = 3; string frequency = 4; }
    message UserCardValuation { map<string, CustomValue> credit_valuations = 1;
                                map<string, CustomValue> other_benefit_valuations = 2;
                                repeated CustomAdjustment custom_adjustments = 3; }
    message ValuationProfile  { string profile_id = 1; map<string, UserCardValuation> card_valuations = 2;
                                Timestamp created_at = 3; Timestamp updated_at = 4; }
    message UserAccountData   { map<string, ValuationProfile> profiles = 1; string active_profile_id = 2; }

All scalars are proto2 optional so that "unset" and "zero" stay distinct.
Timestamp has the same layout as google.protobuf.Timestamp.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "userprofile.v1"

_FDP = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name, number, field_type, label=_FDP.LABEL_OPTIONAL, type_name=None):
    field = message.field.add(name=name, number=number, type=field_type, label=label)
    if type_name:
        field.type_name = type_name


def _add_message_field(message, name, number, type_name, repeated=False):
    label = _FDP.LABEL_REPEATED if repeated else _FDP.LABEL_OPTIONAL
    _add_field(message, name, number, _FDP.TYPE_MESSAGE, label, f".{PACKAGE}.{type_name}")


def _add_map_field(message, name, number, value_type):
    # Map fields are a repeated nested "<CamelName>Entry" message with key = 1, value = 2.
    entry_name = "".join(part.capitalize() for part in name.split("_")) + "Entry"
    entry = message.nested_type.add(name=entry_name)
    entry.options.map_entry = True
    _add_field(entry, "key", 1, _FDP.TYPE_STRING)
    _add_message_field(entry, "value", 2, value_type)
    _add_message_field(message, name, number, f"{message.name}.{entry_name}", repeated=True)


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="userprofile/v1/account.proto",
        package=PACKAGE,
        syntax="proto2",
    )

    timestamp = file_proto.message_type.add(name="Timestamp")
    _add_field(timestamp, "seconds", 1, _FDP.TYPE_INT64)
    _add_field(timestamp, "nanos", 2, _FDP.TYPE_INT32)

    custom_value = file_proto.message_type.add(name="CustomValue")
    _add_field(custom_value, "cents", 1, _FDP.TYPE_INT64)
    _add_field(custom_value, "proportion", 2, _FDP.TYPE_DOUBLE)
    _add_field(custom_value, "explanation", 3, _FDP.TYPE_STRING)

    adjustment = file_proto.message_type.add(name="CustomAdjustment")
    _add_field(adjustment, "custom_adjustment_id", 1, _FDP.TYPE_STRING)
    _add_field(adjustment, "description", 2, _FDP.TYPE_STRING)
    _add_field(adjustment, "value_cents", 3, _FDP.TYPE_INT64)
    _add_field(adjustment, "frequency", 4, _FDP.TYPE_STRING)

    card_valuation = file_proto.message_type.add(name="UserCardValuation")
    _add_map_field(card_valuation, "credit_valuations", 1, "CustomValue")
    _add_map_field(card_valuation, "other_benefit_valuations", 2, "CustomValue")
    _add_message_field(card_valuation, "custom_adjustments", 3, "CustomAdjustment", repeated=True)

    profile = file_proto.message_type.add(name="ValuationProfile")
    _add_field(profile, "profile_id", 1, _FDP.TYPE_STRING)
    _add_map_field(profile, "card_valuations", 2, "UserCardValuation")
    _add_message_field(profile, "created_at", 3, "Timestamp")
    _add_message_field(profile, "updated_at", 4, "Timestamp")

    account = file_proto.message_type.add(name="UserAccountData")
    _add_map_field(account, "profiles", 1, "ValuationProfile")
    _add_field(account, "active_profile_id", 2, _FDP.TYPE_STRING)

    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file().SerializeToString())

UserAccountMessage = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName(f"{PACKAGE}.UserAccountData")
)
