#!/usr/bin/env python3
"""
Combined server:
  HTTP on port 8080 — serves the web client, GET /time
  WebSocket on port 8765 — /chat room, /ws raw relay, /echo
"""
import argparse
import asyncio
import http.server
import logging
import os
import socket
import threading
from datetime import datetime

import websockets

from .interval import send_on_interval
from .registry import ConnectionRegistry
from .room import Room

logger = logging.getLogger(__name__)

HOST = '0.0.0.0'
HTTP_PORT = 8080
WS_PORT = 8765
DIRECTORY = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'web', 'static')


# ── HTTP ─────────────────────────────────────────────────────
class Handler(http.server.SimpleHTTPRequestHandler):
    def do_GET(self):
        if self.path.split('?')[0] == '/time':
            body = datetime.now().astimezone().isoformat().encode()
            self.send_response(200)
            self.send_header('Content-Type', 'text/plain; charset=utf-8')
            self.send_header('Content-Length', str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return
        super().do_GET()

    def do_OPTIONS(self):
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def log_message(self, format, *args):
        logger.debug('%s - %s', self.address_string(), format % args)


def make_http_server(host, port, directory):
    def handler(*args, **kwargs):
        return Handler(*args, directory=directory, **kwargs)
    return http.server.ThreadingHTTPServer((host, port), handler)


# ── WebSocket ─────────────────────────────────────────────────
async def echo(ws):
    try:
        async for message in ws:
            await ws.send(message)
    except websockets.ConnectionClosed:
        pass


def make_ws_handler(room, registry):
    """Route an upgraded connection by request path."""
    routes = {
        '/chat': room.accept,
        '/ws': registry.handler,
        '/echo': echo,
    }

    async def ws_handler(ws):
        path = ws.request.path.split('?')[0] if ws.request else '/'
        handler = routes.get(path)
        if handler is None:
            logger.warning('No websocket route for %s from %s', path, ws.remote_address)
            await ws.close(1008, 'unknown path')
            return
        await handler(ws)

    return ws_handler


async def serve(host=HOST, ws_port=WS_PORT, http_port=HTTP_PORT, directory=DIRECTORY,
                interval=0.0, ready=None):
    room = Room()
    registry = ConnectionRegistry()

    try:
        lan_ip = socket.gethostbyname(socket.gethostname())
    except OSError:
        lan_ip = '?.?.?.?'

    http_server = None
    if http_port is not None:
        http_server = make_http_server(host, http_port, directory)
        print(f'HTTP  http://localhost:{http_port}     (this machine)')
        print(f'      http://{lan_ip}:{http_port}  (LAN)')
        print(f'Directory: {directory}')
        # HTTP in a background thread
        threading.Thread(target=http_server.serve_forever, daemon=True).start()

    print(f'WS    ws://localhost:{ws_port}/chat')
    print(f'      ws://{lan_ip}:{ws_port}/chat  (LAN)')

    stop_interval = None
    if interval:
        stop_interval = send_on_interval(registry, interval=interval)

    try:
        async with websockets.serve(make_ws_handler(room, registry), host, ws_port):
            if ready is not None:
                ready.set()
            await asyncio.Future()
    finally:
        if stop_interval is not None:
            stop_interval()
        await room.close_connections()
        await registry.close_all()
        if http_server is not None:
            http_server.shutdown()
            http_server.server_close()


def main(argv=None):
    parser = argparse.ArgumentParser(description='WebSocket chat relay with static file server.')
    parser.add_argument('--host', default=HOST, help=f'Interface to bind (default: {HOST})')
    parser.add_argument('--ws-port', type=int, default=WS_PORT, help=f'WebSocket port (default: {WS_PORT})')
    parser.add_argument('--http-port', type=int, default=HTTP_PORT, help=f'HTTP port (default: {HTTP_PORT})')
    parser.add_argument('--no-http', action='store_true', help='Do not start the HTTP server')
    parser.add_argument('--directory', default=DIRECTORY, help='Static file directory')
    parser.add_argument('--interval', type=float, default=0.0,
                        help='Broadcast a sample message to /ws clients every N seconds (0 = off)')
    parser.add_argument('--log-level', default='INFO', help='Logging level (default: INFO)')
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        asyncio.run(serve(
            host=args.host,
            ws_port=args.ws_port,
            http_port=None if args.no_http else args.http_port,
            directory=args.directory,
            interval=args.interval,
        ))
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main()
