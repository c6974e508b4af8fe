"""
gRPC-Web客户端模块

提供通过HTTP调用远程gRPC-Web服务的传输实现
"""
from .transport import GrpcWebTransport, CONTENT_TYPE
from .status import code_from_int, http_status_to_code, status_from_metadata

__all__ = [
    "GrpcWebTransport",
    "CONTENT_TYPE",
    "code_from_int",
    "http_status_to_code",
    "status_from_metadata",
]
