"""
Shared fixtures: an in-process fake of the remote multi-file JSON document
service (GitHub Gist API shape) served with aiohttp.
"""
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from vault_sync.conf import StoreConfig
from vault_sync.store import RemoteBlobStore
from vault_sync.naming import PerIdentityEntry


DOCUMENT_ID = "abc123def456"
TOKEN = "ghp_test_token_value"


class FakeGist:
    """Minimal Gist service: GET returns every file, PATCH merges by name."""

    def __init__(self, document_id: str = DOCUMENT_ID, token: str = TOKEN):
        self.document_id = document_id
        self.token = token
        self.files: dict[str, str] = {}
        self.requests: list[tuple[str, dict]] = []
        self.fail_status = None
        # entries served as truncated, with their content behind raw_url
        self.truncated: set[str] = set()
        self.raw_base = None
        self.raw_bodies: dict[str, bytes] = {}

    def _check(self, request: web.Request):
        if self.fail_status is not None:
            return web.json_response(
                {"message": "forced failure"}, status=self.fail_status
            )
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return web.json_response({"message": "Bad credentials"}, status=401)
        if request.match_info["document_id"] != self.document_id:
            return web.json_response({"message": "Not Found"}, status=404)
        return None

    def _file(self, name: str, content: str, base: str) -> dict:
        if name not in self.truncated:
            return {"filename": name, "content": content, "truncated": False}
        return {
            "filename": name,
            "content": content[:8],
            "truncated": True,
            "raw_url": f"{self.raw_base or base}/raw/{name}",
        }

    def _document(self, request: web.Request) -> dict:
        base = str(request.url.origin())
        return {
            "id": self.document_id,
            "files": {
                name: self._file(name, content, base)
                for name, content in self.files.items()
            },
        }

    async def get(self, request: web.Request) -> web.Response:
        self.requests.append(("GET", dict(request.headers)))
        error = self._check(request)
        if error is not None:
            return error
        return web.json_response(self._document(request))

    async def patch(self, request: web.Request) -> web.Response:
        self.requests.append(("PATCH", dict(request.headers)))
        error = self._check(request)
        if error is not None:
            return error
        body = await request.json()
        for name, entry in body["files"].items():
            if entry is None:
                self.files.pop(name, None)
            else:
                self.files[name] = entry["content"]
        return web.json_response(self._document(request))

    async def raw(self, request: web.Request) -> web.Response:
        self.requests.append(("RAW", dict(request.headers)))
        name = request.match_info["name"]
        body = self.raw_bodies.get(name)
        if body is None:
            if name not in self.files:
                return web.Response(status=404)
            body = self.files[name].encode("utf-8")
        return web.Response(
            body=body, content_type="text/plain", charset="utf-8"
        )

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/raw/{name}", self.raw)
        app.router.add_get("/gists/{document_id}", self.get)
        app.router.add_patch("/gists/{document_id}", self.patch)
        return app


@pytest.fixture
def fake_gist():
    return FakeGist()


@pytest.fixture
def make_fake_gist():
    return FakeGist


@pytest_asyncio.fixture
async def gist_server(fake_gist):
    server = TestServer(fake_gist.app())
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def api_url(gist_server) -> str:
    return str(gist_server.make_url("")).rstrip("/")


@pytest.fixture
def config(api_url) -> StoreConfig:
    return StoreConfig(document_id=DOCUMENT_ID, token=TOKEN, api_url=api_url)


@pytest_asyncio.fixture
async def store(config):
    async with RemoteBlobStore(config) as blob_store:
        yield blob_store


@pytest_asyncio.fixture
async def identity_store(config):
    async with RemoteBlobStore(config, naming=PerIdentityEntry()) as blob_store:
        yield blob_store
