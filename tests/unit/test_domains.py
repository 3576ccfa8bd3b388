"""Tests for subdomain tenant resolution and cross-subdomain URL building."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.portal.core.config import Settings
from src.portal.core.domains import (
    cookie_domain,
    resolve_tenant,
    root_url,
    strip_tenant_prefix,
    tenant_path,
    tenant_url,
    tenant_url_for_slug_change,
)

pytestmark = pytest.mark.unit

label = st.from_regex(r"^[a-z0-9]([a-z0-9-]{0,20}[a-z0-9])?$", fullmatch=True).filter(
    lambda s: "localhost" not in s
)


class TestResolveTenant:
    """Host header -> tenant label."""

    @pytest.mark.parametrize(
        ("host", "root", "expected"),
        [
            ("acme.example.com", "example.com", "acme"),
            ("ACME.Example.com", "example.com", "acme"),
            ("acme.example.com:443", "example.com", "acme"),
            ("a.b.example.com", "example.com", "a.b"),
            ("example.com", "example.com", None),
            ("www.other.com", "example.com", None),
            ("notexample.com", "example.com", None),
            ("acme.localhost:3000", "localhost:3000", "acme"),
            ("acme.localhost", "localhost:3000", "acme"),
            ("localhost:3000", "localhost:3000", None),
            ("localhost", "localhost:3000", None),
        ],
    )
    def test_examples(self, host: str, root: str, expected: str | None):
        """Known hosts resolve to the documented labels."""
        assert resolve_tenant(host, root) == expected

    @pytest.mark.parametrize("host", [None, "", "   ", ":3000"])
    def test_empty_or_malformed_host_is_root(self, host: str | None):
        """Nothing parseable never raises and means the root surface."""
        assert resolve_tenant(host, "example.com") is None

    def test_missing_root_domain(self):
        assert resolve_tenant("acme.example.com", None) is None
        assert resolve_tenant("acme.example.com", "") is None

    @given(slug=label)
    @settings(max_examples=100)
    def test_round_trip_production(self, slug: str):
        """A tenant URL's host resolves back to its slug."""
        assert resolve_tenant(f"{slug}.example.com", "example.com") == slug

    @given(slug=label, port=st.integers(min_value=1, max_value=65535))
    @settings(max_examples=100)
    def test_round_trip_localhost_with_port(self, slug: str, port: int):
        assert resolve_tenant(f"{slug}.localhost:{port}", f"localhost:{port}") == slug

    @given(host=st.text(max_size=40))
    @settings(max_examples=200)
    def test_never_raises(self, host: str):
        """Arbitrary input yields a string or None, never an exception."""
        result = resolve_tenant(host, "example.com")
        assert result is None or isinstance(result, str)


class TestCookieDomain:
    def test_production_scopes_to_parent_domain(self):
        """Every subdomain must read the same cookie."""
        assert cookie_domain("acme.example.com", "example.com") == ".example.com"
        assert cookie_domain("example.com", "example.com") == ".example.com"

    def test_localhost_is_host_only(self):
        assert cookie_domain("acme.localhost:3000", "localhost:3000") is None
        assert cookie_domain(None, "localhost:3000") is None


class TestUrls:
    @pytest.fixture
    def https(self) -> Settings:
        return Settings(root_domain="example.com", protocol="https")

    @pytest.fixture
    def local(self) -> Settings:
        return Settings(root_domain="localhost:3000", protocol="http")

    def test_root_url(self, https: Settings, local: Settings):
        assert root_url("/login", https) == "https://example.com/login"
        assert root_url("login", https) == "https://example.com/login"
        assert root_url("/select-workspace", local) == "http://localhost:3000/select-workspace"

    def test_tenant_url(self, https: Settings, local: Settings):
        assert tenant_url("acme", "/dashboard", https) == "https://acme.example.com/dashboard"
        assert tenant_url("acme", "", local) == "http://acme.localhost:3000/"

    def test_tenant_url_resolves_back(self, https: Settings):
        url = tenant_url("acme", "/settings", https)
        host = url.split("://", 1)[1].split("/", 1)[0]
        assert resolve_tenant(host, https.root_domain) == "acme"

    def test_slug_change_keeps_current_page(self, https: Settings):
        """After a slug change the same page opens on the new subdomain."""
        assert (
            tenant_url_for_slug_change("acme-corp", "/settings", https)
            == "https://acme-corp.example.com/settings"
        )
        assert tenant_url_for_slug_change("acme-corp", "", https) == "https://acme-corp.example.com/"


class TestTenantPaths:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [("/", "/acme"), ("", "/acme"), ("/dashboard", "/acme/dashboard"), ("settings", "/acme/settings")],
    )
    def test_tenant_path(self, path: str, expected: str):
        assert tenant_path("acme", path) == expected

    @given(slug=label, path=st.from_regex(r"^(/[a-z0-9-]{1,10}){0,4}$", fullmatch=True))
    @settings(max_examples=100)
    def test_strip_prefix_inverts_tenant_path(self, slug: str, path: str):
        public = path or "/"
        assert strip_tenant_prefix(slug, tenant_path(slug, public)) == public

    def test_strip_prefix_leaves_other_paths(self):
        assert strip_tenant_prefix("acme", "/acmecorp/settings") == "/acmecorp/settings"
