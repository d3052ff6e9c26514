"""Control operations on live inject nodes."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from crontinject.builder import FireResult
from crontinject.config import Settings
from crontinject.exceptions import (
    BadRequestError,
    InternalError,
    InvalidRuleError,
    PreviewError,
)
from crontinject.registry import NodeRegistry
from crontinject.scheduler import RuleMode, Scheduler
from crontinject.scheduler.rules import parse_rule_args

logger = logging.getLogger(__name__)


class InjectControl:
    """Framework-agnostic control surface for inject nodes.

    Args:
        registry: Registry of live nodes
        settings: Engine settings (preview count, interval cap)

    Example:
        control = InjectControl(registry)
        control.force_fire("node-1")
        dates = control.preview_next_dates("onTime", ["09:00"], count=3)
    """

    def __init__(self, registry: NodeRegistry, settings: Settings | None = None):
        self.registry = registry
        self.settings = settings or Settings()

    # ============================================
    # Fire
    # ============================================

    def force_fire(self, node_id: str, props: Optional[List[Any]] = None) -> FireResult:
        """Fire a node immediately.

        Args:
            node_id: Registered node id
            props: Optional one-off replacement for the node's props

        Returns:
            FireResult of the build (errors are also reported by the node)

        Raises:
            NodeNotFoundError: If no node is registered under ``node_id``
            InternalError: If building or delivering the message failed
        """
        node = self.registry.get_or_raise(node_id)

        try:
            return node.receive(props)
        except Exception as e:
            node._report_error(f"Inject failed: {e}")
            raise InternalError(f"Inject failed: {e}") from e

    # ============================================
    # Preview
    # ============================================

    def preview_next_dates(
        self,
        method: Optional[str],
        args: Any = None,
        count: Optional[int] = None,
        after: Optional[datetime] = None,
    ) -> List[datetime]:
        """Compute upcoming fire dates of a rule without scheduling it.

        Args:
            method: Rule method name (``"cron"`` selects the cron grammar)
            args: Rule arguments (list or JSON-encoded list)
            count: Number of dates (defaults to ``settings.preview_count``)
            after: Reference time (defaults to now)

        Raises:
            BadRequestError: If the method is missing or the arguments are invalid
            InternalError: If the computation fails unexpectedly
        """
        if not method:
            raise BadRequestError("Method is required.")

        if count is None:
            count = self.settings.preview_count

        try:
            mode = RuleMode(method=method, args=tuple(parse_rule_args(method, args)))
            return Scheduler.preview_next_dates(
                mode, count, after=after, interval_cap=self.settings.interval_cap
            )
        except InvalidRuleError as e:
            logger.debug(f"Rejected preview for '{method}': {e}")
            raise BadRequestError("Invalid arguments.") from e
        except PreviewError as e:
            if isinstance(e.__cause__, InvalidRuleError):
                raise BadRequestError("Invalid arguments.") from e
            raise BadRequestError(str(e)) from e
        except Exception as e:
            logger.error(f"Preview failed for '{method}': {e}", exc_info=True)
            raise InternalError(f"[{type(e).__name__}]: {e}") from e

    # ============================================
    # Node Queries
    # ============================================

    def get_node_info(self, node_id: str) -> Optional[Dict[str, Any]]:
        """Describe a node's scheduling state, or None if unknown."""
        node = self.registry.get(node_id)
        if node is None:
            return None

        scheduler = node.scheduler
        return {
            "id": node.id,
            "status": scheduler.status.value,
            "timing": scheduler.status_text,
            "fires": scheduler.fire_count,
            "config_error": str(scheduler.config_error) if scheduler.config_error else None,
            "last_error": node.last_error,
        }

    def list_nodes(self) -> List[Dict[str, Any]]:
        return [self.get_node_info(node_id) for node_id in self.registry.list_nodes()]
