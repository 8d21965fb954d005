#!/usr/bin/env python3
"""
Math Delimiter Conversion Server
HTTP endpoints for the editor plugin, WebSocket channel for notifications
Paste conversion, current-document conversion and whole-workspace conversion
"""

import sys
import argparse
import asyncio
import json
import logging
from pathlib import Path
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread, Lock
import websockets

from system_clipboard import ClipboardError, get_clipboard
from document_store import DocumentError, DocumentStore
from math_converter import MathConverter
from converter_settings import SettingsStore

LOG_FILE = Path.home() / '.vim' / 'mathdelims.log'

logger = logging.getLogger('mathdelims')


def setup_logging(log_file: Path = LOG_FILE, level=logging.DEBUG):
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stderr)
        ]
    )


class RequestError(Exception):
    """Malformed request from the editor"""


def _require_text(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise RequestError(f"'{key}' must be a string")
    return value


class ConversionServer:
    def __init__(self, port=8775, base_path='.', settings_path=None, trace=False):
        logger.info(f"Initializing ConversionServer on port {port}, base_path={base_path}")
        self.port = port
        self.base_path = Path(base_path).resolve()
        self.converter = MathConverter(trace=trace)
        self.documents = DocumentStore(base_path)
        self.settings_store = SettingsStore(settings_path)
        self.clients = set()
        self.loop = None  # Will be set to the asyncio event loop

        # One document at a time: read, convert, write
        self._convert_lock = Lock()
        self._documents_converted = 0

    async def websocket_handler(self, websocket):
        """Handle WebSocket connections"""
        logger.info(f"New WebSocket connection from {websocket.remote_address}")
        self.clients.add(websocket)
        try:
            # Keep connection open
            await websocket.wait_closed()
        finally:
            logger.info(f"WebSocket connection closed from {websocket.remote_address}")
            self.clients.discard(websocket)

    async def broadcast(self, message):
        """Send a notification to all connected clients"""
        logger.debug(f"Broadcasting to {len(self.clients)} clients: {message}")
        if self.clients:
            message_str = json.dumps(message)
            results = await asyncio.gather(
                *[client.send(message_str) for client in list(self.clients)],
                return_exceptions=True
            )
            for i, result in enumerate(results):
                if isinstance(result, Exception):
                    logger.error(f"Failed to send to client {i}: {result}")

    def notify(self, text, level='info'):
        """Queue a user-visible notification from any thread"""
        message = {'type': 'notice', 'level': level, 'message': text}
        if level == 'error':
            logger.error(text)
        else:
            logger.info(text)

        if self.loop:
            asyncio.run_coroutine_threadsafe(self.broadcast(message), self.loop)
        else:
            logger.debug("No event loop, notification not broadcast")
        return message

    def handle_paste(self, data):
        """
        Paste interception
        Empty clipboard text means nothing is inserted; with default paste
        conversion disabled the text is inserted as it is
        """
        text = _require_text(data, 'text')
        if not text:
            return {'insert': False, 'text': ''}

        settings = self.settings_store.load()
        if settings.enable_default_paste_conversion:
            text = self.converter.convert(text)
        return {'insert': True, 'text': text}

    def handle_paste_command(self, data):
        """Manual paste: always converts, reads the system clipboard when no text is sent"""
        text = data.get('text')
        if text is None:
            text = get_clipboard()
        elif not isinstance(text, str):
            raise RequestError("'text' must be a string")
        return {'text': self.converter.convert(text)}

    def handle_convert(self, data):
        """Convert the editor's current buffer"""
        content = _require_text(data, 'content')
        return {'content': self.converter.convert(content)}

    def handle_convert_file(self, data):
        """Convert one workspace document in place"""
        target = _require_text(data, 'path')
        with self._convert_lock:
            filepath = self.documents.resolve_file_path(target)
            changed = self._convert_document(filepath)
        return {'path': str(filepath), 'changed': changed}

    def handle_convert_all(self, data=None):
        """
        Convert every Markdown document in the workspace
        Stops at the first failing document; one notification either way
        """
        with self._convert_lock:
            documents = self.documents.list_documents()
            logger.info(f"Converting {len(documents)} documents under {self.base_path}")
            changed = 0
            for filepath in documents:
                try:
                    if self._convert_document(filepath):
                        changed += 1
                except DocumentError as e:
                    self.notify(f"Conversion stopped: {e}", level='error')
                    raise

        notice = self.notify(
            f"Math delimiters converted in the whole workspace "
            f"({changed} of {len(documents)} documents changed)"
        )
        return {'documents': len(documents), 'changed': changed, 'notice': notice['message']}

    def _convert_document(self, filepath: Path) -> bool:
        content = self.documents.read(filepath)
        converted = self.converter.convert(content)
        self.documents.write(filepath, converted)
        self._documents_converted += 1
        return converted != content

    def get_settings(self):
        return self.settings_store.load().model_dump()

    def update_settings(self, data):
        value = data.get('enable_default_paste_conversion')
        if not isinstance(value, bool):
            raise RequestError("'enable_default_paste_conversion' must be a boolean")
        return self.settings_store.update(enable_default_paste_conversion=value).model_dump()

    def get_stats(self):
        """Get conversion statistics"""
        stats = self.converter.get_stats()
        stats['documents_converted'] = self._documents_converted
        stats['file_cache'] = self.documents.get_cache_stats()
        return stats

    def get_status(self):
        return {
            'status': 'ok',
            'base_path': str(self.base_path),
            'clients': len(self.clients),
        }


class RequestHandler(BaseHTTPRequestHandler):
    server_instance = None

    GET_ROUTES = {
        '/': 'get_status',
        '/settings': 'get_settings',
        '/stats': 'get_stats',
    }
    POST_ROUTES = {
        '/paste': 'handle_paste',
        '/paste-command': 'handle_paste_command',
        '/convert': 'handle_convert',
        '/convert-file': 'handle_convert_file',
        '/convert-all': 'handle_convert_all',
        '/settings': 'update_settings',
    }

    def log_message(self, format, *args):
        """Custom logging to use our logger"""
        logger.debug(f"HTTP {format % args}")

    def send_json(self, status, payload):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def send_error_json(self, status, message):
        self.send_json(status, {'status': 'error', 'message': message})

    def do_GET(self):
        """Handle GET requests"""
        logger.debug(f"GET {self.path}")
        route = self.GET_ROUTES.get(self.path)
        if not route:
            self.send_error_json(404, f"Unknown path: {self.path}")
            logger.warning(f"404: {self.path}")
            return

        try:
            self.send_json(200, getattr(self.server_instance, route)())
        except Exception as e:
            logger.error(f"Error handling GET {self.path}: {e}", exc_info=True)
            self.send_error_json(500, str(e))

    def do_POST(self):
        """Handle POST requests from the editor"""
        logger.debug(f"POST {self.path}")
        route = self.POST_ROUTES.get(self.path)
        if not route:
            self.send_error_json(404, f"Unknown path: {self.path}")
            logger.warning(f"404: {self.path}")
            return

        try:
            content_length = int(self.headers.get('Content-Length', 0))
            post_data = self.rfile.read(content_length) if content_length else b'{}'
            data = json.loads(post_data.decode('utf-8'))
            if not isinstance(data, dict):
                raise RequestError("Request body must be a JSON object")

            response = getattr(self.server_instance, route)(data)
            self.send_json(200, response)

        except (RequestError, ValueError) as e:
            logger.warning(f"Bad request to {self.path}: {e}")
            self.send_error_json(400, str(e))
        except DocumentError as e:
            logger.error(f"Document error on {self.path}: {e}", exc_info=True)
            self.send_error_json(422, str(e))
        except ClipboardError as e:
            logger.error(f"Clipboard unavailable: {e}")
            self.server_instance.notify(f"Clipboard unavailable: {e}", level='error')
            self.send_error_json(503, str(e))
        except Exception as e:
            logger.error(f"Error processing {self.path}: {e}", exc_info=True)
            self.send_error_json(500, str(e))


async def start_websocket_server(server, ws_port):
    """Start WebSocket server"""
    # Set the event loop reference
    server.loop = asyncio.get_running_loop()
    logger.info(f"Starting WebSocket server on port {ws_port}")

    async def handler(websocket):
        logger.debug(f"WebSocket handler called for {websocket.remote_address}")
        await server.websocket_handler(websocket)

    try:
        async with websockets.serve(handler, 'localhost', ws_port):
            logger.info(f"WebSocket server listening on ws://localhost:{ws_port}")
            await asyncio.Future()  # run forever
    except Exception as e:
        logger.error(f"WebSocket server error: {e}", exc_info=True)
        raise


def start_http_server(server, port):
    """Start HTTP server"""
    RequestHandler.server_instance = server
    httpd = HTTPServer(('localhost', port), RequestHandler)
    logger.info(f"HTTP server started on http://localhost:{port}")
    print(f"Server started on http://localhost:{port}", flush=True)
    httpd.serve_forever()


def main():
    parser = argparse.ArgumentParser(description='Math Delimiter Conversion Server')
    parser.add_argument('--port', type=int, default=8775, help='HTTP server port')
    parser.add_argument('--ws-port', type=int, default=8776, help='WebSocket server port')
    parser.add_argument('--base', type=str, default='.', help='Workspace directory')
    parser.add_argument('--settings', type=Path, default=None, help='Settings file')
    parser.add_argument('--trace', action='store_true', help='Log the classification of every line')
    args = parser.parse_args()

    setup_logging()
    logger.info("=" * 60)
    logger.info("Starting Math Delimiter Conversion Server")
    logger.info(f"HTTP port: {args.port}, WebSocket port: {args.ws_port}")
    logger.info(f"Base path: {args.base}")
    logger.info(f"Log file: {LOG_FILE}")
    logger.info("=" * 60)

    server = ConversionServer(port=args.port, base_path=args.base,
                              settings_path=args.settings, trace=args.trace)

    # Start HTTP server in a thread
    http_thread = Thread(target=start_http_server, args=(server, args.port), daemon=True)
    http_thread.start()

    # Start WebSocket server on separate port
    try:
        asyncio.run(start_websocket_server(server, args.ws_port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        print("\nServer stopped", flush=True)
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        print(f"Error: {e}", flush=True)


if __name__ == '__main__':
    main()
