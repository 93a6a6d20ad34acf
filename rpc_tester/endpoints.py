"""JSON-RPC endpoints under test and truth endpoint selection."""

import itertools
from dataclasses import dataclass
from typing import Any

import requests

from .errors import TransportError

ROLE_A = "A"
ROLE_B = "B"
ROLE_TRUTH = "truth"

DEFAULT_TIMEOUT = 120

_request_ids = itertools.count(1)


class RpcEndpoint:
    """A stateless JSON-RPC connection identified by its role.

    Each call is an independent ``requests.post``, so one endpoint can be
    shared by every worker thread of a run.
    """

    def __init__(self, name: str, url: str, headers: dict[str, str] | None = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.name = name
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"RpcEndpoint({self.name!r}, {self.url!r})"

    def call(self, method: str, params: list | None = None) -> Any:
        """Make a JSON-RPC call and return the decoded ``result``."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(_request_ids),
        }
        try:
            resp = requests.post(self.url, json=payload, headers=self.headers or None,
                                 timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            raise TransportError(self.name, method, str(e)) from e
        except ValueError as e:
            raise TransportError(self.name, method, f"invalid JSON response: {e}") from e

        if not isinstance(body, dict):
            raise TransportError(self.name, method, f"unexpected response: {body!r}")
        if "error" in body:
            raise TransportError(self.name, method, f"RPC error: {body['error']}")
        return body.get("result")


@dataclass(frozen=True)
class EndpointSet:
    """The two compared endpoints plus the truth source.

    ``truth`` may be the very same object as ``a`` or ``b``.
    """

    a: Any
    b: Any
    truth: Any

    @property
    def compared(self) -> tuple:
        return ((ROLE_A, self.a), (ROLE_B, self.b))

    @property
    def truth_role(self) -> str:
        if self.truth is self.a:
            return ROLE_A
        if self.truth is self.b:
            return ROLE_B
        return ROLE_TRUTH


def resolve_truth(selector: str | None, a, b, headers: dict[str, str] | None = None,
                  timeout: float = DEFAULT_TIMEOUT):
    """Resolve a truth selector (``a``, ``b`` or a URL) to an endpoint.

    An empty selector defaults to endpoint A.
    """
    if not selector or selector.lower() == "a":
        return a
    if selector.lower() == "b":
        return b
    if not selector.startswith(("http://", "https://")):
        raise ValueError(f"Invalid truth selector '{selector}', expected 'a', 'b' or an http(s) URL")
    return RpcEndpoint(ROLE_TRUTH, selector, headers=headers, timeout=timeout)


def parse_headers(values: list[str] | None) -> dict[str, str]:
    """Parse ``NAME:VALUE`` header arguments."""
    headers = {}
    for header in values or []:
        if ":" not in header:
            raise ValueError(f"Invalid header format '{header}', expected 'Name: Value'")
        name, value = header.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers
