from .badges import GENERATE_BADGE_PATH, Badge, GenerateBadgeRequest, GenerateBadgeResponse
from .codec import ProtobufCodec

__all__ = [
    "GENERATE_BADGE_PATH",
    "Badge",
    "GenerateBadgeRequest",
    "GenerateBadgeResponse",
    "ProtobufCodec",
]
