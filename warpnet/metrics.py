"""Reports node liveness to a Prometheus push gateway."""

from __future__ import annotations

import base64
import logging
import urllib.request
from dataclasses import dataclass
from urllib.parse import quote

log = logging.getLogger(__name__)

_JOB = "status"
_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"
_BODY = (
    "# HELP node_online_status 1 if node is online, 0 otherwise.\n"
    "# TYPE node_online_status gauge\n"
    "node_online_status 1\n"
).encode()


def _label_segment(name: str, value: str) -> str:
    if "/" in value:
        encoded = base64.urlsafe_b64encode(value.encode()).decode().rstrip("=")
        return f"{name}@base64/{encoded or '='}"
    return f"{name}/{quote(value, safe='')}"


@dataclass
class MetricsClient:
    """Pushes the node's online status, grouped by node id and bootstrap role."""

    address: str
    node_id: str
    is_bootstrap: bool
    timeout: float = 10.0

    def _url(self) -> str:
        base = self.address if "://" in self.address else "http://" + self.address
        base = base.removesuffix("/")
        groups = "/".join(
            (
                _label_segment("node_id", self.node_id),
                _label_segment("is_bootstrap", "true" if self.is_bootstrap else "false"),
            )
        )
        return f"{base}/metrics/job/{quote(_JOB, safe='')}/{groups}"

    def push_status_online(self) -> bool:
        """Push the online gauge; return whether the gateway accepted it.

        Nothing is pushed without an address; failures are logged, not raised.
        """
        if not self.address:
            return False
        if not self.node_id:
            log.error("failed to push status online, no node ID")
            return False
        request = urllib.request.Request(
            self._url(),
            data=_BODY,
            method="PUT",
            headers={"Content-Type": _CONTENT_TYPE},
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                if response.status not in (200, 202):
                    raise ValueError(f"unexpected status code {response.status}")
        except (OSError, ValueError) as exc:
            log.error("failed to push online metric: %s", exc)
            return False
        return True