"""
ghmock Resource Tracking

Tracks ephemeral platform resources created while recording fixtures or
running end-to-end tests, and releases them in reverse creation order.

Deletion goes through an explicit table of handlers keyed by resource type,
registered by the collaborator that knows how to delete each kind of resource.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

DeleteHandler = Callable[[str], None]


@dataclass(frozen=True)
class TrackedResource:
    """A created resource awaiting cleanup, e.g. ("milestone", "owner/repo/3")."""

    resource_type: str
    identifier: str

    def __str__(self) -> str:
        return f"{self.resource_type}:{self.identifier}"


@dataclass
class CleanupReport:
    """Outcome of a cleanup pass."""

    deleted: List[TrackedResource]
    failed: List[Tuple[TrackedResource, str]]

    @property
    def success(self) -> bool:
        return not self.failed


class ResourceTracker:
    """
    Tracks resources and guarantees their cleanup.

    Example:
        handlers = {'milestone': delete_milestone, 'label': delete_label}
        with ResourceTracker(handlers) as tracker:
            tracker.track('milestone', 'acme/widgets/3')
            ...
        # milestone deleted here, even if the block raised
    """

    def __init__(self, handlers: Optional[Dict[str, DeleteHandler]] = None):
        self.handlers: Dict[str, DeleteHandler] = dict(handlers or {})
        self.logger = logging.getLogger("ghmock.resources")
        self._tracked: List[TrackedResource] = []

    def register_handler(self, resource_type: str, handler: DeleteHandler) -> None:
        self.handlers[resource_type] = handler

    def track(self, resource_type: str, identifier: str) -> TrackedResource:
        resource = TrackedResource(resource_type, identifier)
        self._tracked.append(resource)
        self.logger.debug(f"[TRACK] {resource}")
        return resource

    def is_tracked(self, resource_type: str, identifier: str) -> bool:
        return TrackedResource(resource_type, identifier) in self._tracked

    @property
    def tracked(self) -> Tuple[TrackedResource, ...]:
        return tuple(self._tracked)

    def __len__(self) -> int:
        return len(self._tracked)

    def cleanup(self) -> CleanupReport:
        """
        Delete every tracked resource, most recent first.

        Failures are logged and collected; cleanup always runs to the end and
        the tracking list is emptied.
        """
        report = CleanupReport(deleted=[], failed=[])
        if not self._tracked:
            return report

        self.logger.info(f"[CLEANUP] Cleaning up {len(self._tracked)} tracked resources...")

        pending = list(reversed(self._tracked))
        self._tracked = []

        for resource in pending:
            handler = self.handlers.get(resource.resource_type)
            if handler is None:
                self.logger.warning(f"[CLEANUP] No delete handler for type: {resource.resource_type}")
                report.failed.append((resource, "no handler"))
                continue
            try:
                handler(resource.identifier)
            except Exception as e:
                self.logger.warning(f"[CLEANUP] Failed to delete {resource}: {e}")
                report.failed.append((resource, str(e)))
            else:
                report.deleted.append(resource)

        if report.failed:
            self.logger.warning(f"[CLEANUP] Completed with {len(report.failed)} failures")
        else:
            self.logger.info("[CLEANUP] All resources cleaned up successfully")
        return report

    def __enter__(self) -> 'ResourceTracker':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
