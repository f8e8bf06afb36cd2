"""Tests for deepclean.cli."""
import unittest
from unittest.mock import MagicMock, patch

from deepclean import cli


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        for name, kwargs in (
            ("console", {}),
            ("print_scan", {}),
            ("setup_logging", {}),
        ):
            p = patch.object(cli, name, **kwargs)
            setattr(self, f"mock_{name}", p.start())
            self.addCleanup(p.stop)
        cfg = patch.object(cli.config_module, "load", return_value={"exclude_targets": ["browsers"]})
        cfg.start()
        self.addCleanup(cfg.stop)
        self.session = MagicMock()
        session_patch = patch.object(cli, "get_session", return_value=self.session)
        session_patch.start()
        self.addCleanup(session_patch.stop)


class TestMain(CliTestCase):

    def test_categories(self):
        cli.main(["categories"])
        self.assertTrue(self.mock_console.print.called)

    def test_no_action_prints_help_and_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            cli.main([])
        self.assertEqual(ctx.exception.code, 0)

    def test_unknown_key(self):
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--clean", "nope"])
        self.assertEqual(ctx.exception.code, 1)

    def test_excluded_key(self):
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--clean", "browsers"])
        self.assertEqual(ctx.exception.code, 1)

    @patch.object(cli, "run_cleanup")
    def test_dangerous_requires_force(self, mock_run):
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--clean", "deep_system"])
        self.assertEqual(ctx.exception.code, 1)
        mock_run.assert_not_called()

    @patch.object(cli, "run_cleanup")
    @patch.object(cli, "confirm", return_value=False)
    def test_cancelled(self, _confirm, mock_run):
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--clean", "user_essentials"])
        self.assertEqual(ctx.exception.code, 0)
        mock_run.assert_not_called()

    @patch.object(cli, "run_cleanup", return_value=["deep_system"])
    @patch.object(cli, "confirm", return_value=True)
    def test_clean_runs_selected(self, _confirm, mock_run):
        cli.main(["--clean", "user_essentials", "deep_system", "--force", "--dry-run"])
        mock_run.assert_called_once_with(["user_essentials", "deep_system"], dry_run=True)
        self.mock_setup_logging.assert_called_once_with(verbose=False)


class TestRunCleanup(CliTestCase):

    @patch.object(cli.cleanup, "perform_cleanup", return_value=[])
    def test_releases_session(self, mock_perform):
        self.assertEqual(cli.run_cleanup(["user_essentials"]), [])
        mock_perform.assert_called_once_with(["user_essentials"], dry_run=False, session=self.session)
        self.session.release.assert_called_once_with()

    @patch.object(cli.cleanup, "perform_cleanup", side_effect=KeyboardInterrupt)
    def test_releases_session_on_interrupt(self, _perform):
        with self.assertRaises(KeyboardInterrupt):
            cli.run_cleanup(["deep_system"])
        self.session.release.assert_called_once_with()

    def test_sigterm_becomes_system_exit(self):
        with self.assertRaises(SystemExit) as ctx:
            cli._raise_system_exit(15, None)
        self.assertEqual(ctx.exception.code, 143)
