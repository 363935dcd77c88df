"""
Network failure bookkeeping and the strictness policy applied to it.

A `FailureLedger` lives for exactly one render. Page listeners feed it while
the page is open; `FailureClassifier.enforce` reads it once, after the delay
and scroll steps and before capture.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from headless_render.components.options.models import FailurePolicy
from headless_render.core.exceptions import PolicyAbortError
from headless_render.core.logger import get_logger

logger = get_logger(__name__)

SUCCESS_STATUS = 200
ERROR_STATUS_FLOOR = 400

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass
class NetworkFailure:
    """One failed or error-status exchange. `status` is None when no response arrived."""
    url: str
    status: Optional[int] = None
    reason: Optional[str] = None

    def describe(self) -> str:
        if self.status is None:
            return f"{self.reason or 'failed'} {self.url}"
        return f"{self.status} {self.url}"


def same_resource(left: Optional[str], right: Optional[str]) -> bool:
    """
    URL equality as the browser sees it.

    Responses never carry the fragment, and Chromium reports URLs with the
    default port dropped and the path percent-encoded, so ``https://host:443``,
    ``https://host/`` and ``https://host/#top`` are all the same resource.
    """
    if left is None or right is None:
        return False
    return _canonical(left) == _canonical(right)


def _canonical(url: str) -> str:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    try:
        port = parts.port
    except ValueError:
        port = None
    if port is not None and port == DEFAULT_PORTS.get(scheme):
        netloc = netloc.rsplit(":", 1)[0]
    path = quote(unquote(parts.path), safe="/:@!$&'()*+,;=-._~") or "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


@dataclass
class FailureLedger:
    """
    Request-scoped record of failed exchanges.

    Attributes:
        main_url: The navigation target, or None for inline markup.
        failures: Failed requests and error responses in arrival order.
        main_resource: Last exchange observed for `main_url`.
    """
    main_url: Optional[str] = None
    failures: List[NetworkFailure] = field(default_factory=list)
    main_resource: Optional[NetworkFailure] = None

    def record_response(self, response: Any) -> None:
        """`response` listener: keeps error statuses and tracks the main resource."""
        status = response.status
        url = response.url
        if status >= ERROR_STATUS_FLOOR:
            self.failures.append(NetworkFailure(url=url, status=status))
        if same_resource(url, self.main_url):
            self.main_resource = NetworkFailure(url=url, status=status)

    def record_request_failed(self, request: Any) -> None:
        """`requestfailed` listener: every failed request is kept."""
        entry = NetworkFailure(url=request.url, reason=request.failure)
        self.failures.append(entry)
        if same_resource(request.url, self.main_url):
            self.main_resource = entry

    def __len__(self) -> int:
        return len(self.failures)


class FailureClassifier:
    """Decides whether the failures collected so far abort the render."""

    def enforce(self, ledger: FailureLedger, policy: FailurePolicy) -> None:
        """
        Applies both checkpoints.

        A non-empty ledger is always logged. With `FailurePolicy.ALL` any
        failure aborts; with `FailurePolicy.PAGE` a main resource that did
        not answer 200 aborts. Inline markup has no main resource, so the
        second checkpoint does not apply to it.

        Raises:
            PolicyAbortError: With status code 412 when a checkpoint triggers.
        """
        if ledger.failures:
            logger.warning(f"Number of failed requests: {len(ledger.failures)}")
            for failure in ledger.failures:
                logger.warning(failure.describe())

            if policy is FailurePolicy.ALL:
                raise PolicyAbortError(
                    f"{len(ledger.failures)} requests have failed. See server log for more details.",
                    failure_count=len(ledger.failures),
                )

        if policy is FailurePolicy.PAGE and ledger.main_url is not None:
            outcome = ledger.main_resource
            status = outcome.status if outcome else None
            if status != SUCCESS_STATUS:
                raise PolicyAbortError(
                    f"Request for {ledger.main_url} did not directly succeed and returned status {status}",
                    failure_count=len(ledger.failures),
                    url=ledger.main_url,
                    observed_status=status,
                )
