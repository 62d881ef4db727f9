"""Local preview server for the generated page.

Run: python serve.py   then open http://localhost:8766
"""
import os, sys
import http.server
import datetime as dt

import render_site

PORT = int(os.getenv('PORT', '8766'))
PUBLIC_DIR = os.getenv('PUBLIC_DIR', 'public')

CONTENT_TYPES = {
    '.html': 'text/html; charset=utf-8',
    '.css': 'text/css',
    '.js': 'application/javascript',
    '.json': 'application/json',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.svg': 'image/svg+xml',
    '.ico': 'image/x-icon',
}


def resolve_path(request_path: str, index_file: str, public_dir: str):
    """Map a request path to a file on disk; None when it escapes the public dir."""
    path = request_path.split('?', 1)[0].split('#', 1)[0]
    if path in ('/', '/index.html'):
        return index_file
    root = os.path.realpath(public_dir)
    target = os.path.realpath(os.path.join(root, path.lstrip('/')))
    if target != root and not target.startswith(root + os.sep):
        return None
    return target


class Handler(http.server.BaseHTTPRequestHandler):
    index_file = render_site.SITE_OUTPUT
    public_dir = PUBLIC_DIR

    def log_message(self, format, *args):
        print(f"{dt.datetime.now().isoformat()} {self.command} {self.path}")

    def do_GET(self):
        target = resolve_path(self.path, self.index_file, self.public_dir)
        if target is None:
            self._send(404, b'File not found', 'text/plain')
            return
        try:
            with open(target, 'rb') as f:
                data = f.read()
        except (FileNotFoundError, IsADirectoryError):
            self._send(404, b'File not found', 'text/plain')
            return
        except OSError as e:
            print('[warn] read failed:', target, e)
            self._send(500, b'Server error', 'text/plain')
            return
        ext = os.path.splitext(target)[1].lower()
        self._send(200, data, CONTENT_TYPES.get(ext, 'application/octet-stream'))

    def _send(self, status: int, body: bytes, content_type: str):
        self.send_response(status)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def main():
    server = http.server.HTTPServer(('127.0.0.1', PORT), Handler)
    print(f'Preview server on http://localhost:{PORT}')
    print(f'   page: {Handler.index_file}')
    print(f'   static: {Handler.public_dir}')
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print('Preview server stopped.')
    finally:
        server.server_close()
    return 0

if __name__ == '__main__':
    sys.exit(main())
