import httpx
import pytest

from appliance_deployer.connectivity.appliance_api import ApplianceApi
from appliance_deployer.connectivity.license_portal import PivnetApi
from appliance_deployer.core.exceptions import ApiError


class Recorder:
    """MockTransport handler that records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404)
        if callable(handler):
            return handler(request)
        # fresh copy so a route can answer more than once
        return httpx.Response(handler.status_code, headers=handler.headers, content=handler.content)

    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]


class TestPivnetApi:
    def test_lists_releases_with_token(self):
        recorder = Recorder(
            {("GET", "/api/v2/products/stemcells/releases"): httpx.Response(200, json={"releases": []})}
        )
        api = PivnetApi("asd123", transport=httpx.MockTransport(recorder))

        response = api.get_product_releases("stemcells")

        assert response.json() == {"releases": []}
        assert recorder.requests[0].headers["Authorization"] == "Token asd123"

    def test_download_streams_to_file(self, tmp_path):
        recorder = Recorder(
            {
                ("POST", "/api/v2/products/stemcells/releases/1/product_files/2/download"):
                    httpx.Response(302, headers={"Location": "https://files.example.com/s.tgz"}),
                ("GET", "/s.tgz"): httpx.Response(200, content=b"stemcell-bytes"),
            }
        )
        api = PivnetApi("asd123", transport=httpx.MockTransport(recorder))
        target = tmp_path / "s.tgz"

        api.download_product_release_file("stemcells", 1, 2, write_to=str(target))

        assert target.read_bytes() == b"stemcell-bytes"

    def test_refused_download_raises(self, tmp_path):
        recorder = Recorder(
            {
                ("POST", "/api/v2/products/stemcells/releases/1/product_files/2/download"):
                    httpx.Response(451, text="EULA not accepted"),
            }
        )
        api = PivnetApi("asd123", transport=httpx.MockTransport(recorder))

        with pytest.raises(ApiError) as excinfo:
            api.download_product_release_file("stemcells", 1, 2, write_to=str(tmp_path / "s.tgz"))

        assert excinfo.value.status_code == 451
        assert not (tmp_path / "s.tgz").exists()

    def test_eula_acceptance(self):
        recorder = Recorder(
            {("POST", "/api/v2/products/stemcells/releases/1/eula_acceptance"): httpx.Response(200, json={})}
        )
        api = PivnetApi("asd123", transport=httpx.MockTransport(recorder))

        api.accept_product_release_eula("stemcells", 1)

        assert recorder.paths() == [("POST", "/api/v2/products/stemcells/releases/1/eula_acceptance")]


def token_route(tokens):
    def handler(request):
        tokens.append(request)
        return httpx.Response(200, json={"access_token": f"token-{len(tokens)}"})

    return handler


class TestApplianceApi:
    @pytest.fixture
    def tokens(self):
        return []

    @pytest.fixture
    def recorder(self, tokens):
        return Recorder(
            {
                ("POST", "/uaa/oauth/token"): token_route(tokens),
                ("GET", "/api/v0/diagnostic_report"): httpx.Response(
                    200, json={"versions": {"release_version": "1.8.2.0"}}
                ),
                ("POST", "/api/v0/stemcells"): httpx.Response(200, json={}),
                ("GET", "/login/ensure_availability"): httpx.Response(
                    302,
                    headers={"Location": "https://1.2.3.4/auth/cloudfoundry"},
                    text="You are being /auth/cloudfoundry redirected",
                ),
                ("POST", "/api/v0/setup"): httpx.Response(200, json={}),
            }
        )

    @pytest.fixture
    def api(self, recorder):
        return ApplianceApi("1.2.3.4", "foo", "bar", transport=httpx.MockTransport(recorder))

    def test_token_is_cached_and_sent(self, api, recorder, tokens):
        api.get_diagnostic_report()
        api.get_diagnostic_report()

        assert len(tokens) == 1
        assert recorder.requests[-1].headers["Authorization"] == "Bearer token-1"
        assert b"grant_type=password" in tokens[0].content

    def test_reset_access_token_reauthenticates(self, api, recorder, tokens):
        api.get_diagnostic_report()
        api.reset_access_token()
        api.get_diagnostic_report()

        assert len(tokens) == 2
        assert recorder.requests[-1].headers["Authorization"] == "Bearer token-2"

    def test_probe_does_not_follow_redirect_or_authenticate(self, api, tokens):
        response = api.probe_availability()

        assert response.status_code == 302
        assert "/auth/cloudfoundry" in response.text
        assert tokens == []

    def test_create_user_is_unauthenticated(self, api, recorder, tokens):
        api.create_user("foo", "bar", "passphrase")

        assert tokens == []
        assert b'"admin_user_name":"foo"' in recorder.requests[0].content.replace(b" ", b"")

    def test_import_stemcell_uploads_file(self, api, recorder, tmp_path):
        stemcell = tmp_path / "stemcell-1.tgz"
        stemcell.write_bytes(b"image")

        assert api.import_stemcell(str(stemcell)).is_success

        upload = recorder.requests[-1]
        assert upload.url.path == "/api/v0/stemcells"
        assert b'name="stemcell[file]"' in upload.content

    def test_transport_failure_becomes_api_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        api = ApplianceApi("1.2.3.4", "foo", "bar", transport=httpx.MockTransport(refuse))

        with pytest.raises(ApiError):
            api.probe_availability()
