"""Shared test fixtures and IR snippets."""

import http.server
import platform
import shutil
import socket
import subprocess
import threading

import pytest

from irjit.engine import initialize_native_backend


RETURN_42_IR = """\
define i32 @main(i32 %argc, ptr %argv) {
entry:
  ret i32 42
}
"""

NO_ARGS_MAIN_IR = """\
define i32 @main() {
entry:
  ret i32 7
}
"""

# Returns argv[0][0], or -1 when argc == 0.
FIRST_CHAR_IR = """\
define i32 @main(i32 %argc, ptr %argv) {
entry:
  %empty = icmp eq i32 %argc, 0
  br i1 %empty, label %none, label %some

none:
  ret i32 -1

some:
  %first = load ptr, ptr %argv
  %c = load i8, ptr %first
  %r = zext i8 %c to i32
  ret i32 %r
}
"""

# Returns strlen(argv[0]) through the host C library.
STRLEN_IR = """\
declare i64 @strlen(ptr)

define i32 @main(i32 %argc, ptr %argv) {
entry:
  %first = load ptr, ptr %argv
  %n = call i64 @strlen(ptr %first)
  %r = trunc i64 %n to i32
  ret i32 %r
}
"""

NO_MAIN_IR = """\
define i32 @helper(i32 %x) {
entry:
  %y = add i32 %x, 1
  ret i32 %y
}
"""

# Line 3 references an undefined value.
MALFORMED_IR = """\
define i32 @main(i32 %argc, ptr %argv) {
entry:
  ret i32 %missing
}
"""

# Parses, but the verifier rejects it: %a uses %b before its definition.
UNVERIFIABLE_IR = """\
define i32 @main(i32 %argc, ptr %argv) {
entry:
  %a = add i32 %b, 1
  %b = add i32 1, 1
  ret i32 %a
}
"""

# Calls irjit_lib_triple, exported by the shared_lib fixture: 3 * 14.
LIB_CALL_IR = """\
declare i32 @irjit_lib_triple(i32)

define i32 @main(i32 %argc, ptr %argv) {
entry:
  %r = call i32 @irjit_lib_triple(i32 14)
  ret i32 %r
}
"""

LIB_SOURCE = """\
int irjit_lib_triple(int x) { return 3 * x; }
"""

posix_only = pytest.mark.skipif(
    platform.system() == "Windows", reason="uses dlopen(NULL) host symbols"
)


@pytest.fixture(scope="session", autouse=True)
def native_backend():
    """Initialize the LLVM native target once for the whole run."""
    return initialize_native_backend()


@pytest.fixture
def write_ir(tmp_path):
    """Write IR text (or bytes) to a file and return its path as a string."""
    def _write(content, name="module.ll"):
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_bytes(content)
        return str(path)
    return _write


@pytest.fixture
def unused_port():
    """A local TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def http_server():
    """Serve a dict of ``path -> (status, body)`` on a local port.

    Yields ``(host, routes)``; tests fill ``routes`` before fetching.
    """
    routes: dict[str, tuple[int, bytes]] = {}

    class Handler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            status, body = routes.get(self.path, (404, b"not found"))
            self.send_response(status)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    server = http.server.HTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"127.0.0.1:{server.server_address[1]}", routes
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture(scope="session")
def shared_lib(tmp_path_factory):
    """Build a small shared library exporting ``irjit_lib_triple``."""
    if platform.system() == "Windows":
        pytest.skip("builds a POSIX shared object")
    compiler = shutil.which("cc") or shutil.which("gcc") or shutil.which("clang")
    if compiler is None:
        pytest.skip("no C compiler available")
    workdir = tmp_path_factory.mktemp("lib")
    source = workdir / "triple.c"
    source.write_text(LIB_SOURCE)
    library = workdir / "libirjit_triple.so"
    result = subprocess.run(
        [compiler, "-shared", "-fPIC", "-o", str(library), str(source)],
        capture_output=True,
    )
    if result.returncode != 0:
        pytest.skip(f"could not build test library: {result.stderr.decode(errors='replace')}")
    return str(library)
