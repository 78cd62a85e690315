import asyncio
import io
from pathlib import Path

from websockets.exceptions import ConnectionClosed

from quillpress.build import BuildError
from quillpress.server import DevServer, _ChangeHandler, _ReloadHandler, inject_reload_script


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


def make_handler(tmp_path: Path, path: str) -> _ReloadHandler:
    handler = _ReloadHandler.__new__(_ReloadHandler)
    handler.path = path
    handler.directory = str(tmp_path)
    handler.command = "GET"
    handler.request_version = "HTTP/1.1"
    handler.server_version = ""
    handler.sys_version = ""
    handler._headers_buffer = []
    handler.headers = {}
    handler.rfile = io.BytesIO(b"")
    handler.wfile = io.BytesIO()
    handler.codes = []
    handler.send_response = lambda code, message=None: handler.codes.append(code)
    handler.send_header = lambda *args, **kwargs: None
    handler.end_headers = lambda: None
    handler.send_error = lambda code, message=None: handler.codes.append(("error", code))
    return handler


def test_inject_reload_script():
    assert inject_reload_script("<body>x</body>", "<s/>") == "<body>x<s/></body>"
    assert inject_reload_script("plain", "<s/>") == "plain<s/>"


def test_reload_handler_injects_script(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>Hello</body></html>", encoding="utf-8")
    handler = make_handler(tmp_path, "/index.html")
    assert _ReloadHandler.send_head(handler) is None
    assert handler.codes == [200]
    assert b"WebSocket" in handler.wfile.getvalue()

    directory = make_handler(tmp_path, "/")
    _ReloadHandler.send_head(directory)
    assert b"Hello" in directory.wfile.getvalue()


def test_reload_handler_404(tmp_path):
    handler = make_handler(tmp_path, "/missing.html")
    assert _ReloadHandler.send_head(handler) is None
    assert handler.codes == [("error", 404)]

    (tmp_path / "404.html").write_text("<body>oops</body>", encoding="utf-8")
    custom = make_handler(tmp_path, "/missing.html")
    _ReloadHandler.send_head(custom)
    assert custom.codes == [404]
    assert b"oops" in custom.wfile.getvalue()


def test_send_head_falls_back_for_static_files(tmp_path):
    (tmp_path / "style.css").write_text("body{}", encoding="utf-8")
    handler = make_handler(tmp_path, "/style.css")
    result = _ReloadHandler.send_head(handler)
    assert result is not None
    result.close()


def test_ports_from_options_and_config(tmp_path):
    server = DevServer(tmp_path, http_port=5055)
    assert server.http_port == 5055
    assert server.ws_port == 5056

    explicit = DevServer(tmp_path, http_port=5055, ws_port=6000)
    assert explicit.ws_port == 6000
    assert ":6000" in explicit._reload_script

    (tmp_path / "quillpress.yaml").write_text("port: 4100\nws_port: 7000\n", encoding="utf-8")
    configured = DevServer(tmp_path)
    assert (configured.http_port, configured.ws_port) == (4100, 7000)


def test_watched_paths_follow_config(tmp_path):
    (tmp_path / "quillpress.yaml").write_text("posts_dir: content\n", encoding="utf-8")
    server = DevServer(tmp_path)
    assert server.watched_paths == [tmp_path / "content", tmp_path / "theme", tmp_path / "static"]
    assert server.output_dir == tmp_path / "dist"


def test_change_handler_skips_output_and_staging(tmp_path):
    server = DevServer(tmp_path)
    called = []
    server.rebuild = lambda include_drafts: called.append(include_drafts)
    handler = _ChangeHandler(server, include_drafts=True)

    handler.on_any_event(DummyEvent(str(server.output_dir / "index.html")))
    handler.on_any_event(DummyEvent(str(server._staging_dir / "index.html")))
    handler.on_any_event(DummyEvent(str(tmp_path / "posts"), is_directory=True))
    assert called == []

    handler.on_any_event(DummyEvent(str(tmp_path / "posts" / "a.md")))
    assert called == [True]


def test_async_broadcast_drops_closed_clients():
    server = DevServer(Path("."))

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class ClosedWS:
        async def send(self, msg):
            raise ConnectionClosed(None, None)

    good = GoodWS()
    closed = ClosedWS()
    server._ws_clients = {good, closed}
    asyncio.run(server._async_broadcast("hello"))
    assert good.messages == ["hello"]
    assert closed not in server._ws_clients


def test_rebuild_builds_into_staging_and_reloads(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    calls = []

    def fake_build(root, **kwargs):
        calls.append(kwargs)
        (kwargs["output_dir_override"] / "index.html").write_text("new", encoding="utf-8")

    monkeypatch.setattr("quillpress.server.build_site", fake_build)
    server._broadcast_reload = lambda: calls.append("reload")
    server.output_dir.mkdir()
    (server.output_dir / "stale.html").write_text("old", encoding="utf-8")

    server.rebuild(include_drafts=True)
    assert calls[0]["output_dir_override"] == server._staging_dir
    assert calls[0]["clean_output"] is True
    assert calls[0]["use_cache"] is False
    assert calls[0]["include_drafts"] is True
    assert calls[1] == "reload"
    assert (server.output_dir / "index.html").read_text(encoding="utf-8") == "new"
    assert not (server.output_dir / "stale.html").exists()
    assert not server._staging_dir.exists()


def test_rebuild_reports_build_errors(monkeypatch, tmp_path, capsys):
    server = DevServer(tmp_path)
    calls = []

    def failing_build(root, **kwargs):
        raise BuildError(tmp_path / "theme" / "post.html", "boom")

    monkeypatch.setattr("quillpress.server.build_site", failing_build)
    server._broadcast_reload = lambda: calls.append("reload")
    server.rebuild(include_drafts=False)
    assert calls == []
    assert "Build failed" in capsys.readouterr().out
    assert server._rebuilding is False


def test_rebuild_guard(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    calls = []
    monkeypatch.setattr("quillpress.server.build_site", lambda *args, **kwargs: calls.append("built"))
    server._broadcast_reload = lambda: calls.append("reloaded")
    server._debounce_seconds = 0.0

    sigs = [("a",), ("a",), ("b",)]
    server._compute_signature = lambda: sigs.pop(0) if sigs else ("b",)
    server.rebuild(include_drafts=False)
    server._rebuilding = True
    server.rebuild(include_drafts=False)  # skipped while rebuilding
    server._rebuilding = False
    server.rebuild(include_drafts=False)  # same signature
    server.rebuild(include_drafts=False)  # signature changed
    assert calls == ["built", "reloaded", "built", "reloaded"]


def test_compute_signature(tmp_path):
    server = DevServer(tmp_path)
    assert server._compute_signature() is None

    (tmp_path / "posts").mkdir()
    (tmp_path / "posts" / "a.md").write_text("hi", encoding="utf-8")
    (tmp_path / "quillpress.yaml").write_text("title: t", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    names = [entry[0] for entry in server._compute_signature()]
    assert names == ["quillpress.yaml", str(Path("posts") / "a.md")]


def test_start_watcher_schedules_existing_paths(monkeypatch, tmp_path):
    (tmp_path / "posts").mkdir()
    server = DevServer(tmp_path)
    scheduled = []

    class DummyObserver:
        def schedule(self, handler, path, recursive):
            scheduled.append((path, recursive))

        def start(self):
            scheduled.append(("started", True))

    monkeypatch.setattr("quillpress.server.Observer", DummyObserver)
    server._start_watcher(include_drafts=False)
    assert scheduled == [
        (str(tmp_path / "posts"), True),
        (str(tmp_path), False),
        ("started", True),
    ]


def test_stop_and_ws_handler(tmp_path):
    server = DevServer(tmp_path)
    server.stop()

    class DummyObserver:
        def __init__(self):
            self.calls = []

        def stop(self):
            self.calls.append("stop")

        def join(self):
            self.calls.append("join")

    server._observer = DummyObserver()
    server.stop()
    assert server._observer.calls == ["stop", "join"]

    class DummyWS:
        def __init__(self):
            self.closed = False

        async def wait_closed(self):
            self.closed = True

    ws = DummyWS()
    asyncio.run(server._ws_handler(ws))
    assert ws.closed
    assert ws not in server._ws_clients
