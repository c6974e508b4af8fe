"""Messages of ``lavanet.lava.pairing.BadgeGenerator``.

Built from a FileDescriptorProto at import time so no protoc step is needed.
Only the fields the relay touches are declared; protobuf keeps the others as
unknown fields and writes them back on serialization.
"""
from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory


PACKAGE = "lavanet.lava.pairing"
FILE_NAME = "lavanet/lava/pairing/badges.proto"

_F = descriptor_pb2.FieldDescriptorProto


def _field(msg: descriptor_pb2.DescriptorProto, name: str, number: int, ftype: int, type_name: str | None = None) -> None:
    f = msg.field.add(name=name, number=number, type=ftype, label=_F.LABEL_OPTIONAL)
    if type_name:
        f.type_name = type_name


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    fd = descriptor_pb2.FileDescriptorProto(name=FILE_NAME, package=PACKAGE, syntax="proto3")

    req = fd.message_type.add(name="GenerateBadgeRequest")
    _field(req, "badge_address", 1, _F.TYPE_STRING)
    _field(req, "project_id", 2, _F.TYPE_STRING)
    _field(req, "spec_id", 3, _F.TYPE_STRING)

    badge = fd.message_type.add(name="Badge")
    _field(badge, "cu_allocation", 1, _F.TYPE_UINT64)
    _field(badge, "epoch", 2, _F.TYPE_UINT64)
    _field(badge, "address", 3, _F.TYPE_STRING)
    _field(badge, "lava_chain_id", 4, _F.TYPE_STRING)
    _field(badge, "project_sig", 5, _F.TYPE_BYTES)
    _field(badge, "virtual_epoch", 6, _F.TYPE_UINT64)

    resp = fd.message_type.add(name="GenerateBadgeResponse")
    _field(resp, "badge", 1, _F.TYPE_MESSAGE, f".{PACKAGE}.Badge")
    _field(resp, "badge_signer_address", 3, _F.TYPE_STRING)

    svc = fd.service.add(name="BadgeGenerator")
    svc.method.add(
        name="GenerateBadge",
        input_type=f".{PACKAGE}.GenerateBadgeRequest",
        output_type=f".{PACKAGE}.GenerateBadgeResponse",
    )
    return fd


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())
DESCRIPTOR = _pool.FindFileByName(FILE_NAME)

GenerateBadgeRequest = message_factory.GetMessageClass(DESCRIPTOR.message_types_by_name["GenerateBadgeRequest"])
Badge = message_factory.GetMessageClass(DESCRIPTOR.message_types_by_name["Badge"])
GenerateBadgeResponse = message_factory.GetMessageClass(DESCRIPTOR.message_types_by_name["GenerateBadgeResponse"])

_service = DESCRIPTOR.services_by_name["BadgeGenerator"]
GENERATE_BADGE_PATH = f"{_service.full_name}/{_service.methods_by_name['GenerateBadge'].name}"


__all__ = [
    "DESCRIPTOR",
    "GenerateBadgeRequest",
    "Badge",
    "GenerateBadgeResponse",
    "GENERATE_BADGE_PATH",
]
