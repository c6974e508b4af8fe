"""gRPC message layer of the relay.

This package hosts the protobuf messages of the remote badge service (in
`messages/`) and the codec that lets the bridge handle them generically.
"""
