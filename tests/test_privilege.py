"""Tests for deepclean.services.privilege."""
import subprocess
import unittest
from unittest.mock import MagicMock, patch

from deepclean.services import privilege
from deepclean.services.privilege import PrivilegeProbe


@patch("deepclean.services.privilege.is_root", return_value=False)
class TestPrivilegeProbe(unittest.TestCase):

    @patch("subprocess.run")
    def test_has_active_grant_true_when_sudo_n_succeeds(self, mock_run, _root):
        mock_run.return_value = MagicMock(returncode=0)
        self.assertTrue(PrivilegeProbe().has_active_grant())
        args = mock_run.call_args[0][0]
        self.assertEqual(args, ["sudo", "-n", "true"])
        self.assertIs(mock_run.call_args[1]["stdin"], subprocess.DEVNULL)

    @patch("subprocess.run")
    def test_has_active_grant_false_without_grant(self, mock_run, _root):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["sudo"], stderr="sudo: a password is required")
        self.assertFalse(PrivilegeProbe().has_active_grant())

    @patch("subprocess.run")
    def test_has_active_grant_fails_closed_on_errors(self, mock_run, _root):
        for exc in (
            subprocess.TimeoutExpired(["sudo"], 5),
            FileNotFoundError("sudo"),
            PermissionError("denied"),
        ):
            mock_run.side_effect = exc
            self.assertFalse(PrivilegeProbe().has_active_grant(), exc)

    @patch("subprocess.run")
    def test_refresh_is_non_interactive(self, mock_run, _root):
        mock_run.return_value = MagicMock(returncode=0)
        self.assertTrue(PrivilegeProbe().refresh())
        self.assertEqual(mock_run.call_args[0][0], ["sudo", "-n", "-v"])

    @patch("subprocess.run")
    def test_refresh_false_when_nothing_to_refresh(self, mock_run, _root):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["sudo"])
        self.assertFalse(PrivilegeProbe().refresh())


class TestRootShortcut(unittest.TestCase):

    @patch("subprocess.run")
    @patch("deepclean.services.privilege.is_root", return_value=True)
    def test_root_always_has_grant(self, _root, mock_run):
        probe = PrivilegeProbe()
        self.assertTrue(probe.has_active_grant())
        self.assertTrue(probe.refresh())
        mock_run.assert_not_called()


class TestRequestInteractive(unittest.TestCase):

    @patch("subprocess.run")
    @patch("shutil.which", return_value=None)
    def test_unavailable_without_sudo(self, _which, mock_run):
        self.assertFalse(privilege.request_interactive("clean system caches"))
        mock_run.assert_not_called()

    @patch("subprocess.run")
    @patch("shutil.which", return_value="/usr/bin/sudo")
    def test_granted(self, _which, mock_run):
        mock_run.return_value = MagicMock(returncode=0)
        with patch.object(privilege.console, "print") as mock_print:
            self.assertTrue(privilege.request_interactive("clean system caches"))
        self.assertIn("clean system caches", mock_print.call_args[0][0])
        self.assertEqual(mock_run.call_args[0][0][:2], ["/usr/bin/sudo", "-v"])

    @patch("subprocess.run")
    @patch("shutil.which", return_value="/usr/bin/sudo")
    def test_denied(self, _which, mock_run):
        mock_run.return_value = MagicMock(returncode=1)
        self.assertFalse(privilege.request_interactive(""))

    @patch("subprocess.run", side_effect=OSError("exec failed"))
    @patch("shutil.which", return_value="/usr/bin/sudo")
    def test_spawn_failure_is_denial(self, _which, _run):
        self.assertFalse(privilege.request_interactive("x"))

    @patch("subprocess.run")
    @patch("shutil.which", return_value="/usr/bin/sudo")
    def test_blank_reason_prints_nothing(self, _which, mock_run):
        mock_run.return_value = MagicMock(returncode=0)
        with patch.object(privilege.console, "print") as mock_print:
            self.assertTrue(privilege.request_interactive("   "))
        mock_print.assert_not_called()
