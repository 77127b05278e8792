"""
Tests for ghmock resource tracking

Tests ephemeral resource cleanup including:
- Reverse creation order
- Missing handlers and failing handlers
- Cleanup on context exit, including after errors
"""

from unittest.mock import Mock

import pytest

from ghmock.mock import ResourceTracker, TrackedResource


class TestResourceTracker:
    """Test ResourceTracker."""

    def test_cleanup_is_lifo(self):
        deleted = []
        tracker = ResourceTracker({
            'milestone': lambda ident: deleted.append(('milestone', ident)),
            'label': lambda ident: deleted.append(('label', ident)),
        })
        tracker.track('milestone', 'o/r/1')
        tracker.track('label', 'o/r/bug')
        tracker.track('milestone', 'o/r/2')

        report = tracker.cleanup()

        assert deleted == [('milestone', 'o/r/2'), ('label', 'o/r/bug'), ('milestone', 'o/r/1')]
        assert report.success
        assert len(report.deleted) == 3
        assert len(tracker) == 0

    def test_missing_handler_is_failure(self):
        tracker = ResourceTracker()
        tracker.track('project', '42')

        report = tracker.cleanup()

        assert not report.success
        assert report.failed == [(TrackedResource('project', '42'), "no handler")]

    def test_failing_handler_does_not_stop_cleanup(self):
        """Test remaining resources are still deleted after a failure."""
        ok = Mock()
        tracker = ResourceTracker({
            'label': Mock(side_effect=RuntimeError("403 Forbidden")),
            'milestone': ok,
        })
        tracker.track('milestone', 'o/r/1')
        tracker.track('label', 'o/r/bug')

        report = tracker.cleanup()

        ok.assert_called_once_with('o/r/1')
        assert report.failed[0][1] == "403 Forbidden"
        assert report.deleted == [TrackedResource('milestone', 'o/r/1')]

    def test_register_handler(self):
        handler = Mock()
        tracker = ResourceTracker()
        tracker.register_handler('label', handler)
        tracker.track('label', 'x')
        tracker.cleanup()
        handler.assert_called_once_with('x')

    def test_is_tracked(self):
        tracker = ResourceTracker()
        tracker.track('label', 'x')
        assert tracker.is_tracked('label', 'x')
        assert not tracker.is_tracked('label', 'y')
        assert str(tracker.tracked[0]) == "label:x"

    def test_empty_cleanup(self):
        assert ResourceTracker().cleanup().success

    def test_context_manager_cleans_up_on_error(self):
        handler = Mock()
        with pytest.raises(ValueError):
            with ResourceTracker({'label': handler}) as tracker:
                tracker.track('label', 'x')
                raise ValueError("test body failed")
        handler.assert_called_once_with('x')
