from __future__ import annotations

from typing import Generic, Type, TypeVar

from google.protobuf.message import DecodeError, Message

from domain.common.exceptions import InvalidFrameException


M = TypeVar("M", bound=Message)


class ProtobufCodec(Generic[M]):
    """MessageCodec for one protobuf message class."""

    def __init__(self, message_cls: Type[M]) -> None:
        self.message_cls = message_cls

    def serialize(self, message: M) -> bytes:
        return message.SerializeToString()

    def deserialize(self, data: bytes) -> M:
        try:
            return self.message_cls.FromString(bytes(data))
        except DecodeError as exc:
            raise InvalidFrameException(
                "invalid data",
                details={"message_type": self.message_cls.DESCRIPTOR.full_name, "error": str(exc)},
            ) from exc
