"""Subdomain-based tenant resolution and cross-subdomain URL building.

Every tenant (workspace) is served from ``<slug>.<root-domain>``; the bare
root domain serves the marketing, login and workspace-selection surface.
The helpers here are pure functions of their inputs: they never raise for
malformed hosts and always give the same answer for the same arguments.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.portal.core.config import Settings

LOCALHOST = "localhost"


def strip_port(host: str) -> str:
    """Drop a trailing ``:port`` and normalise case/whitespace."""
    return host.strip().split(":", 1)[0].lower()


def resolve_tenant(host: str | None, root_domain: str | None) -> str | None:
    """Resolve the tenant label carried by a request host.

    Args:
        host: Raw ``Host`` header value, possibly with a port.
        root_domain: Configured root domain, possibly with a port.

    Returns:
        The tenant label, or None when the host addresses the root surface
        (or cannot be parsed).

    Examples:
        >>> resolve_tenant("acme.example.com", "example.com")
        'acme'
        >>> resolve_tenant("a.b.example.com", "example.com")
        'a.b'
        >>> resolve_tenant("acme.localhost:3000", "localhost:3000")
        'acme'
        >>> resolve_tenant("example.com", "example.com") is None
        True
    """
    if not host or not root_domain:
        return None

    hostname = strip_port(host)
    root = strip_port(root_domain)
    if not hostname or not root:
        return None

    if LOCALHOST in hostname:
        labels = hostname.split(".")
        if len(labels) >= 2 and labels[0] and labels[0] != LOCALHOST:
            return labels[0]
        return None

    suffix = f".{root}"
    if hostname.endswith(suffix) and len(hostname) > len(suffix):
        return hostname[: -len(suffix)]

    return None


def cookie_domain(host: str | None, root_domain: str) -> str | None:
    """Domain attribute for session cookies.

    Cookies are scoped to ``.<root>`` so every tenant subdomain reads the
    same credential. Browsers refuse a ``Domain=localhost`` attribute, so
    localhost-family hosts get host-only cookies (None).
    """
    root = strip_port(root_domain)
    hostname = strip_port(host or "")
    if LOCALHOST in hostname or LOCALHOST in root:
        return None
    return f".{root}"


def _normalize_path(path: str) -> str:
    if not path:
        return "/"
    return path if path.startswith("/") else f"/{path}"


def root_url(path: str, settings: "Settings") -> str:
    """Absolute URL on the root domain, e.g. ``http://localhost:3000/login``."""
    return f"{settings.protocol}://{settings.root_domain}{_normalize_path(path)}"


def tenant_url(slug: str, path: str, settings: "Settings") -> str:
    """Absolute URL on a tenant subdomain, e.g. ``https://acme.example.com/dashboard``."""
    return f"{settings.protocol}://{slug}.{settings.root_domain}{_normalize_path(path)}"


def tenant_path(slug: str, path: str) -> str:
    """Logical application path for tenant-scoped routes (``/<slug><path>``)."""
    path = _normalize_path(path)
    return f"/{slug}" if path == "/" else f"/{slug}{path}"


def strip_tenant_prefix(slug: str, path: str) -> str:
    """Inverse of :func:`tenant_path`; returns the public path a browser sees."""
    prefix = f"/{slug}"
    if path == prefix:
        return "/"
    if path.startswith(f"{prefix}/"):
        return path[len(prefix) :]
    return path


def tenant_url_for_slug_change(new_slug: str, current_path: str, settings: "Settings") -> str:
    """Where to send the browser after a tenant's slug changed.

    ``current_path`` is the public path the browser sees (see
    :func:`strip_tenant_prefix`); the same page on the new subdomain is returned.
    """
    path = _normalize_path(current_path)
    return tenant_url(new_slug, path, settings)
