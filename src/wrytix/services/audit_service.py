"""
# Audit Service

Append-only activity log for every mutating operation in the CMS.

## Entry format

```json
{
  "id": "5f0c...",
  "actor": "alice",
  "action": "user-approved",
  "target": "bob",
  "timestamp": "2026-01-01T12:00:00.000Z",
  "ip": "203.0.113.7",
  "userAgent": "Mozilla/5.0 ...",
  "...": "action-specific metadata"
}
```

Action names are kebab-case (`post-created`, `ad-create-failed`,
`user-delete-approved`). Successful and failed attempts are both recorded.

## Failure semantics

`log_action` is fire-and-forget: a failure to persist the entry is reported
through the application logger and never propagates to the caller, so an
audit problem can not fail the operation being audited.
"""

import uuid
from typing import Any, Dict, List, Optional

from wrytix.database import db_manager
from wrytix.database.store import DESCENDING, LOGS
from wrytix.managers.logging_manager import get_logger
from wrytix.utils.time_utils import to_iso, utcnow

logger = get_logger(prefix="[AuditService]")


class AuditService:
    """Records and queries audit log entries in the `logs` collection."""

    async def log_action(
        self,
        actor: Optional[str],
        action: str,
        target: Optional[str] = "",
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        **metadata: Any,
    ) -> Optional[Dict[str, Any]]:
        """
        Append an audit entry. Never raises.

        Args:
            actor: Username performing the action; defaults to `system`.
            action: Kebab-case action name.
            target: What the action was applied to (slug, username, ad id).
            ip: Client address, when known.
            user_agent: Client user agent, when known.
            **metadata: Extra action-specific fields stored on the entry.

        Returns:
            The stored entry, or `None` when it could not be written.
        """
        entry = {
            "id": uuid.uuid4().hex,
            "actor": actor or "system",
            "action": action,
            "target": target if target is not None else "",
            "timestamp": to_iso(utcnow()),
            "ip": ip,
            "userAgent": user_agent,
        }
        for key, value in metadata.items():
            entry.setdefault(key, value)

        try:
            return await db_manager.store.insert_one(LOGS, entry)
        except Exception as e:
            logger.error("Failed to write audit entry %s for %s: %s", action, entry["actor"], e, exc_info=True)
            return None

    async def list_logs(
        self, action: Optional[str] = None, actor: Optional[str] = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Return log entries newest first.

        `action` and `actor` are case-insensitive substring filters.
        """
        logs = await db_manager.store.find(LOGS, sort=[("timestamp", DESCENDING)])
        if action:
            needle = action.lower()
            logs = [log for log in logs if needle in str(log.get("action", "")).lower()]
        if actor:
            needle = actor.lower()
            logs = [log for log in logs if needle in str(log.get("actor", "")).lower()]
        if limit is not None and limit > 0:
            logs = logs[:limit]
        return logs

    async def clear_logs(self) -> int:
        deleted = await db_manager.store.delete_many(LOGS)
        logger.info("Cleared %d audit log entries", deleted)
        return deleted


# Global audit service instance
audit_service = AuditService()
