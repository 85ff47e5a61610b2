"""Adapter from RequestDescriptor to an unsent requests.Request.

Nothing here opens a connection: to_requests() builds the Request object and
send_options() the keyword arguments an execution layer passes to
requests.Session.send().
"""

from typing import Any
from urllib.parse import quote

import requests
from pydantic import BaseModel
from requests.auth import HTTPBasicAuth

from api_client_gen.compiler.descriptor import RequestDescriptor


def to_requests(descriptor: RequestDescriptor) -> requests.Request:
    """Build an unsent requests.Request from a descriptor."""
    kwargs: dict[str, Any] = {}
    body = descriptor.body
    if isinstance(body, BaseModel):
        kwargs["json"] = body.model_dump(mode="json")
    elif isinstance(body, (str, bytes)):
        kwargs["data"] = body
    elif body is not None:
        kwargs["json"] = body

    auth = None
    if descriptor.auth is not None:
        auth = HTTPBasicAuth(descriptor.auth.username, descriptor.auth.password)

    return requests.Request(
        method=descriptor.method,
        url=descriptor.url,
        headers=dict(descriptor.headers),
        auth=auth,
        **kwargs,
    )


def send_options(descriptor: RequestDescriptor) -> dict[str, Any]:
    """Keyword arguments for requests.Session.send() matching the descriptor."""
    options: dict[str, Any] = {"verify": not descriptor.disable_tls_verification}
    if descriptor.proxy is not None:
        proxy_url = _proxy_url(descriptor)
        options["proxies"] = {"http": proxy_url, "https": proxy_url}
    if descriptor.follow_redirects is not None:
        options["allow_redirects"] = descriptor.follow_redirects
    return options


def _proxy_url(descriptor: RequestDescriptor) -> str:
    proxy = descriptor.proxy
    scheme, sep, host = proxy.url.partition("://")
    if not sep:
        scheme, host = "http", proxy.url
    if proxy.username:
        credentials = quote(proxy.username, safe="")
        if proxy.password:
            credentials += ":" + quote(proxy.password, safe="")
        host = f"{credentials}@{host}"
    if proxy.port is not None:
        host = f"{host.rstrip('/')}:{proxy.port}"
    return f"{scheme}://{host}"
