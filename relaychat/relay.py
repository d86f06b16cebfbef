#!/usr/bin/env python3
"""
Simple WebSocket relay — broadcasts any message from any client to all others.
Usage: relaychat-relay [port]   (default port: 8765)
"""
import asyncio
import logging
import sys

import websockets

from .registry import ConnectionRegistry

PORT = 8765


async def run(port=PORT, registry=None):
    if registry is None:
        registry = ConnectionRegistry()
    print(f'Relay listening on ws://0.0.0.0:{port}')
    try:
        async with websockets.serve(registry.handler, '0.0.0.0', port):
            await asyncio.Future()
    finally:
        await registry.close_all()


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    port = int(argv[0]) if argv else PORT
    logging.basicConfig(level=logging.INFO, format='%(message)s')
    try:
        asyncio.run(run(port))
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main()
