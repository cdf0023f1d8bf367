"""Payload Parser - typed encode/decode of interactive callback values.

Wire form: ``<Tag>|<arg1>|<arg2>...``. Decoding fails closed: an unknown tag
or a wrong argument count raises ``PayloadDecodeError``.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from servicebot.core.exceptions import PayloadDecodeError

SPLITTER = "|"


class PayloadType(Enum):
    SELECT_SERVICE = "SelectService"
    SELECT_QUERY_OPTION = "SelectQueryOption"
    SELECT_URL_ACTION = "SelectUrlAction"


# Expected argument count per tag
_ARITY = {
    PayloadType.SELECT_SERVICE: 1,
    PayloadType.SELECT_QUERY_OPTION: 2,
    PayloadType.SELECT_URL_ACTION: 1,
}


@dataclass(frozen=True)
class Payload:
    type: PayloadType
    args: Tuple[str, ...]

    @property
    def index(self) -> int:
        """Integer argument of SelectService / SelectUrlAction."""
        return int(self.args[0])

    @property
    def field(self) -> str:
        return self.args[0]

    @property
    def value(self) -> str:
        return self.args[1]


def encode_payload(payload_type: PayloadType, *args: Union[str, int]) -> str:
    """Encode a payload, validating arity and the delimiter."""
    if len(args) != _ARITY[payload_type]:
        raise ValueError(f"{payload_type.value} takes {_ARITY[payload_type]} argument(s), got {len(args)}")
    parts = [str(a) for a in args]
    for part in parts:
        if SPLITTER in part:
            raise ValueError(f"Payload argument may not contain '{SPLITTER}': {part!r}")
    return SPLITTER.join([payload_type.value, *parts])


def select_service_payload(service_id: int) -> str:
    return encode_payload(PayloadType.SELECT_SERVICE, service_id)


def select_query_option_payload(field_name: str, value: str) -> str:
    return encode_payload(PayloadType.SELECT_QUERY_OPTION, field_name, value)


def select_url_action_payload(action_index: int) -> str:
    return encode_payload(PayloadType.SELECT_URL_ACTION, action_index)


def decode_payload(raw: str) -> Payload:
    """Decode a payload string.

    Raises:
        PayloadDecodeError: unknown tag, wrong arity or non-integer index
    """
    tag, *args = (raw or "").split(SPLITTER)
    try:
        payload_type = PayloadType(tag)
    except ValueError:
        raise PayloadDecodeError(f"Unknown payload tag: {tag!r}")

    if len(args) != _ARITY[payload_type]:
        raise PayloadDecodeError(
            f"{payload_type.value} expects {_ARITY[payload_type]} argument(s), got {len(args)}"
        )

    if payload_type in (PayloadType.SELECT_SERVICE, PayloadType.SELECT_URL_ACTION):
        try:
            int(args[0])
        except ValueError:
            raise PayloadDecodeError(f"{payload_type.value} expects an integer, got {args[0]!r}")
    elif not args[0]:
        raise PayloadDecodeError("SelectQueryOption expects a field name")

    return Payload(type=payload_type, args=tuple(args))
