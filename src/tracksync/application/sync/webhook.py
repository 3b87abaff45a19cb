"""
Webhook Handler - Apply change notifications pushed by Linear.

Linear delivers one JSON document per change:

    {"action": "create" | "update" | "remove",
     "type": "Issue" | "Project" | ...,
     "data": {...},
     "organizationId": "...", "webhookTimestamp": 1700000000000, "webhookId": "..."}

When a secret is configured the raw body must carry a matching
``Linear-Signature`` header (hex HMAC-SHA256 of the body). Unknown types are
acknowledged and ignored so Linear does not retry them.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from tracksync.adapters.linear.decoders import decode_issue, decode_project
from tracksync.core.domain.enums import WebhookAction
from tracksync.core.exceptions import MalformedResponseError

from .orchestrator import SyncOrchestrator, SyncResult


SIGNATURE_HEADER = "linear-signature"


@dataclass
class WebhookResult:
    """
    Outcome of handling one webhook delivery.

    status_code mirrors what an HTTP endpoint should answer: 200 for handled
    or ignored deliveries, 400 for unreadable payloads, 401 for bad signatures.
    """

    accepted: bool = True
    status_code: int = 200
    event_type: str = ""
    action: str = ""
    ignored: bool = False
    message: str = ""
    sync_result: SyncResult | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "type": self.event_type,
            "action": self.action,
            "ignored": self.ignored,
            "message": self.message,
        }


class WebhookHandler:
    """
    Verifies and dispatches Linear webhook deliveries to the orchestrator.
    """

    def __init__(self, orchestrator: SyncOrchestrator, secret: str | None = None):
        self.orchestrator = orchestrator
        self.secret = secret
        self.logger = logging.getLogger("WebhookHandler")

    def verify_signature(self, body: bytes, signature: str | None) -> bool:
        """
        Check the delivery signature.

        Always true when no secret is configured.
        """
        if not self.secret:
            return True
        if not signature:
            return False
        expected = hmac.new(self.secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature.strip().lower())

    def handle(self, body: bytes, headers: dict[str, str] | None = None) -> WebhookResult:
        """
        Handle a raw webhook delivery.

        Args:
            body: Raw request body, exactly as received
            headers: Request headers (matched case-insensitively)

        Returns:
            WebhookResult describing what was done
        """
        normalized = {k.lower(): v for k, v in (headers or {}).items()}
        signature = normalized.get(SIGNATURE_HEADER)

        if not self.verify_signature(body, signature):
            self.logger.warning("Rejected webhook with missing or invalid signature")
            return WebhookResult(accepted=False, status_code=401, message="Invalid signature")
        if not self.secret and not signature:
            self.logger.debug("No webhook secret configured; accepting unsigned delivery")

        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.warning(f"Rejected webhook with invalid JSON: {e}")
            return WebhookResult(accepted=False, status_code=400, message="Invalid JSON body")

        return self.handle_payload(payload)

    def handle_payload(self, payload: Any) -> WebhookResult:
        """
        Dispatch an already-parsed (and verified) payload.
        """
        if not isinstance(payload, dict):
            return WebhookResult(accepted=False, status_code=400, message="Payload must be an object")

        event_type = str(payload.get("type") or "")
        raw_action = str(payload.get("action") or "")
        self.logger.info(f"Received Linear webhook: {event_type} - {raw_action}")

        try:
            action = WebhookAction(raw_action.lower())
        except ValueError:
            return self._ignored(event_type, raw_action, f"Unhandled action: {raw_action}")

        data = payload.get("data")
        try:
            if event_type == "Issue":
                issue = decode_issue(data)
                sync_result = self.orchestrator.apply_remote_issue(issue, issue.project_id, action)
            elif event_type == "Project":
                project = decode_project(data)
                sync_result = self.orchestrator.apply_remote_project(project, action)
            else:
                return self._ignored(event_type, action.value, f"Unhandled webhook type: {event_type}")
        except MalformedResponseError as e:
            self.logger.warning(f"Rejected {event_type} webhook: {e}")
            return WebhookResult(
                accepted=False,
                status_code=400,
                event_type=event_type,
                action=action.value,
                message=str(e),
            )

        return WebhookResult(
            event_type=event_type,
            action=action.value,
            ignored=bool(sync_result.warnings) and sync_result.task is None and sync_result.project is None,
            message=sync_result.summary(),
            sync_result=sync_result,
            warnings=list(sync_result.warnings),
        )

    def _ignored(self, event_type: str, action: str, message: str) -> WebhookResult:
        self.logger.info(message)
        return WebhookResult(event_type=event_type, action=action, ignored=True, message=message)
