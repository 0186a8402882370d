"""
Defines the WebhookResult value object returned by device webhook notifications.
"""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class WebhookResult:
    """
    Outcome of a webhook notification.

    Attributes:
        ok (bool): True if the endpoint answered with a 2xx status.
        skipped (bool): True if no request was made because the address is absent or not an http(s) URL.
    """

    ok: bool
    skipped: bool

    @classmethod
    def skipped_result(cls) -> "WebhookResult":
        return cls(ok=False, skipped=True)
