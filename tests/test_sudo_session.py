"""Tests for deepclean.services.sudo_session."""
import unittest
from unittest.mock import MagicMock, patch

from deepclean.core.constants import SUDO_ACTIVE_ENV
from deepclean.services.keepalive import KeepaliveError, KeepaliveWorker
from deepclean.services.sudo_session import (
    SessionManager,
    SessionState,
    is_session_active,
    sudo_session,
)


def assert_consistent(test, manager):
    state = manager.state
    test.assertEqual(state.established, state.keepalive_handle is not None, state)
    test.assertEqual(is_session_active(manager._env), state.established)


class SessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.probe = MagicMock()
        self.probe.has_active_grant.return_value = False
        self.worker = MagicMock()
        self.worker.start.return_value = "12345"
        self.prompt = MagicMock(return_value=True)
        self.env = {}
        patcher = patch("atexit.register")
        self.mock_atexit = patcher.start()
        self.addCleanup(patcher.stop)

    def manager(self, **kwargs):
        return SessionManager(
            probe=self.probe,
            worker=self.worker,
            request_interactive=self.prompt,
            env=self.env,
            **kwargs,
        )


class TestEnsure(SessionTestCase):

    def test_initial_state(self):
        m = self.manager()
        self.assertEqual(m.state, SessionState(False, None))
        self.assertEqual(self.env[SUDO_ACTIVE_ENV], "false")

    def test_no_grant_reports_no_session(self):
        m = self.manager()
        self.assertFalse(m.has_sudo_session())

    def test_denied_leaves_state_untouched(self):
        self.prompt.return_value = False
        m = self.manager()
        self.assertFalse(m.ensure("install"))
        self.assertEqual(m.state, SessionState(False, None))
        self.prompt.assert_called_once_with("install")
        self.worker.start.assert_not_called()
        assert_consistent(self, m)

    def test_granted_starts_keepalive(self):
        m = self.manager()
        self.assertTrue(m.ensure("install"))
        self.assertEqual(m.state, SessionState(True, "12345"))
        self.assertEqual(self.env[SUDO_ACTIVE_ENV], "true")
        self.mock_atexit.assert_called_once_with(m.release)
        assert_consistent(self, m)

    def test_existing_grant_skips_prompt(self):
        self.probe.has_active_grant.return_value = True
        m = self.manager()
        self.assertTrue(m.ensure("install"))
        self.prompt.assert_not_called()
        self.worker.start.assert_called_once_with()
        assert_consistent(self, m)

    def test_reentry_does_not_start_second_keepalive(self):
        m = self.manager()
        self.assertTrue(m.ensure("first"))
        self.assertTrue(m.ensure("second"))
        self.worker.start.assert_called_once_with()
        self.prompt.assert_called_once_with("first")
        self.assertEqual(m.state.keepalive_handle, "12345")

    def test_blank_reason_accepted(self):
        m = self.manager()
        self.assertTrue(m.ensure(""))
        self.prompt.assert_called_once_with("")

    def test_keepalive_start_failure_rolls_back(self):
        self.worker.start.side_effect = KeepaliveError("no threads")
        m = self.manager()
        self.assertFalse(m.ensure("install"))
        self.assertEqual(m.state, SessionState(False, None))
        assert_consistent(self, m)

    def test_empty_handle_rolls_back(self):
        self.worker.start.return_value = None
        m = self.manager()
        self.assertFalse(m.ensure("install"))
        self.assertEqual(m.state, SessionState(False, None))

    def test_atexit_registered_once_across_cycles(self):
        m = self.manager()
        m.ensure("a")
        m.release()
        m.ensure("b")
        self.mock_atexit.assert_called_once_with(m.release)


class TestRelease(SessionTestCase):

    def test_release_stops_keepalive_and_clears_state(self):
        m = self.manager()
        m.ensure("install")
        m.release()
        self.worker.stop.assert_called_once_with("12345")
        self.assertEqual(m.state, SessionState(False, None))
        self.assertEqual(self.env[SUDO_ACTIVE_ENV], "false")
        assert_consistent(self, m)

    def test_release_is_idempotent(self):
        m = self.manager()
        m.ensure("install")
        for _ in range(3):
            m.release()
            self.assertEqual(m.state, SessionState(False, None))

    def test_release_without_session_is_noop(self):
        m = self.manager()
        m.release()
        self.assertEqual(m.state, SessionState(False, None))

    def test_release_stale_handle_with_real_worker(self):
        worker = KeepaliveWorker(self.probe, interval=60)
        m = SessionManager(
            probe=self.probe,
            worker=worker,
            request_interactive=self.prompt,
            env=self.env,
            state=SessionState(True, "99999"),
        )
        self.assertEqual(self.env[SUDO_ACTIVE_ENV], "true")
        m.release()
        self.assertEqual(m.state, SessionState(False, None))
        self.assertEqual(self.env[SUDO_ACTIVE_ENV], "false")

    def test_release_logs_stop_failure(self):
        self.worker.stop.side_effect = OSError("kill failed")
        m = self.manager()
        m.ensure("install")
        with self.assertLogs("deepclean.services.sudo_session", level="WARNING"):
            m.release()
        self.assertEqual(m.state, SessionState(False, None))

    def test_full_cycle_with_real_worker(self):
        worker = KeepaliveWorker(self.probe, interval=60)
        m = SessionManager(probe=self.probe, worker=worker, request_interactive=self.prompt, env=self.env)
        self.assertTrue(m.ensure("install"))
        handle = m.state.keepalive_handle
        self.assertTrue(handle.is_alive())
        self.assertTrue(m.ensure("again"))
        self.assertEqual(len(worker.running_handles()), 1)
        m.release()
        self.assertFalse(handle.is_alive())
        self.assertEqual(worker.running_handles(), [])


class TestScopedSession(SessionTestCase):

    def test_releases_on_exception(self):
        m = self.manager()
        with self.assertRaises(ValueError):
            with sudo_session("install", manager=m) as ok:
                self.assertTrue(ok)
                raise ValueError("boom")
        self.worker.stop.assert_called_once_with("12345")
        self.assertFalse(m.established)

    def test_denied_does_not_release(self):
        self.prompt.return_value = False
        m = self.manager()
        with sudo_session("install", manager=m) as ok:
            self.assertFalse(ok)
        self.worker.stop.assert_not_called()

    def test_nested_keeps_outer_session(self):
        m = self.manager()
        with sudo_session("outer", manager=m):
            with sudo_session("inner", manager=m) as ok:
                self.assertTrue(ok)
            self.assertTrue(m.established)
        self.assertFalse(m.established)
        self.worker.stop.assert_called_once_with("12345")


class TestEnvironmentMirror(unittest.TestCase):

    def test_reads_flag(self):
        self.assertTrue(is_session_active({SUDO_ACTIVE_ENV: "true"}))
        self.assertFalse(is_session_active({SUDO_ACTIVE_ENV: "false"}))
        self.assertFalse(is_session_active({}))
