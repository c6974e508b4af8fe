import argparse
import asyncio
import sys

from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import RelayError
from plugin import METHOD_NAME, InMemoryPluginHost, create_plugin


logger = get_logger(__name__)


async def main(frame_hex: str) -> int:
    try:
        data = bytes.fromhex(frame_hex)
    except ValueError:
        logger.error("relay_bad_input", message="input must be a hex encoded frame")
        return 2

    host = InMemoryPluginHost()
    plugin = create_plugin(settings)
    plugin.register(host)
    try:
        result = await host.call(METHOD_NAME, {"data": data})
    except RelayError as exc:
        logger.error("relay_rejected", error_type=exc.error_type, message=exc.message)
        return 1
    finally:
        await plugin.aclose()

    if isinstance(result, RelayError):
        logger.error("relay_failed", error_type=result.error_type, message=result.message)
        return 1
    frames = result if result and isinstance(result[0], list) else [result]
    for frame in frames:
        print(bytes(frame).hex())
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Relay one framed GenerateBadge request.")
    parser.add_argument("frame", help="hex encoded request frame ([type][len:4][payload])")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.frame)))
