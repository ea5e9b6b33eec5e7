import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

import main
from accounts import AccountManager, Session
from main import Application, Menu, MenuOption, parse_args
from dbcase import DatabaseTestCase


class ParseArgsTestCase(unittest.TestCase):

    def test_three_arguments(self):
        self.assertEqual(parse_args(["rentals", "5432", "admin"]), ("rentals", 5432, "admin"))

    def test_wrong_count_or_port(self):
        self.assertIsNone(parse_args(["rentals", "5432"]))
        self.assertIsNone(parse_args(["rentals", "5432", "admin", "extra"]))
        self.assertIsNone(parse_args(["rentals", "port", "admin"]))

    def test_main_prints_usage_and_exits(self):
        err = io.StringIO()
        with mock.patch.object(main.sys, "argv", ["main.py", "rentals"]), redirect_stderr(err):
            with self.assertRaises(SystemExit) as ctx:
                main.main()
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("usage", err.getvalue())


class MenuTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.accounts = AccountManager(self.executor)
        self.handler = mock.Mock(return_value="ran")
        self.menu = Menu("options", [
            MenuOption(3, "View Catalog", self.handler, "view_catalog"),
            MenuOption(10, "Update Catalog", self.handler, "update_catalog"),
        ], self.accounts)

    def test_read_choice_reprompts_until_integer(self):
        choice, out, _ = self.run_with_input(Menu.read_choice, ["abc", "", "10"])
        self.assertEqual(choice, 10)
        self.assertEqual(out.count("your input is invalid!"), 2)

    def test_unrecognized_choice(self):
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertIsNone(self.menu.dispatch(42, Session("mia")))
        self.assertIn("unrecognized choice!", out.getvalue())
        self.handler.assert_not_called()

    def test_manager_gate_blocks_customer(self):
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertIsNone(self.menu.dispatch(10, Session("alice")))
        self.assertIn("access denied", out.getvalue())
        self.handler.assert_not_called()

    def test_manager_gate_lets_manager_through(self):
        self.assertEqual(self.menu.dispatch(10, Session("mia")), "ran")
        self.handler.assert_called_once_with(Session("mia"))

    def test_open_action_for_everyone(self):
        self.assertEqual(self.menu.dispatch(3, Session("alice")), "ran")

    def test_gate_reports_database_failure(self):
        self.conn.close()
        err = io.StringIO()
        with redirect_stderr(err), redirect_stdout(io.StringIO()):
            self.assertIsNone(self.menu.dispatch(10, Session("mia")))
        self.assertTrue(err.getvalue().strip())
        self.handler.assert_not_called()
        self.setUp()

    def test_show_lists_options(self):
        out = io.StringIO()
        with redirect_stdout(out):
            self.menu.show()
        self.assertIn("| OPTIONS |", out.getvalue())
        self.assertIn("10. Update Catalog", out.getvalue())


class ApplicationTestCase(DatabaseTestCase):

    def make_app(self):
        with mock.patch.object(main, "DatabaseManager") as manager:
            manager.return_value.executor = self.executor
            app = Application("rentals", 5432, "admin")
        return app

    def test_login_browse_logout_exit(self):
        app = self.make_app()
        _, out, _ = self.run_with_input(
            app.run, ["2", "alice", "pw", "3", "racing", "", "", "20", "9"]
        )
        self.assertIn("logged in as", out)
        self.assertIn("Kart Mania", out)
        self.assertIn("logged out alice", out)
        self.assertIn("bye!", out)
        app.db.cleanup.assert_called_once()

    def test_logout_follows_its_option_number(self):
        app = self.make_app()
        logout = next(o for o in app.options_menu.options if o.label == "Log out")
        logout.choice = 30
        _, out, _ = self.run_with_input(app.run, ["2", "alice", "pw", "20", "30", "9"])
        self.assertIn("unrecognized choice!", out)
        self.assertEqual(out.count("logged out alice"), 1)
        self.assertIn("bye!", out)

    def test_customer_blocked_from_manager_options(self):
        app = self.make_app()
        _, out, _ = self.run_with_input(app.run, ["2", "alice", "pw", "10", "11", "9", "20", "9"])
        self.assertEqual(out.count("access denied"), 3)

    def test_failed_login_stays_on_main_menu(self):
        app = self.make_app()
        _, out, _ = self.run_with_input(app.run, ["2", "alice", "wrong", "7", "9"])
        self.assertIn("invalid login", out)
        self.assertIn("unrecognized choice!", out)
        self.assertNotIn("| OPTIONS |", out)

    def test_end_of_input_disconnects(self):
        app = self.make_app()
        _, out, _ = self.run_with_input(app.run, ["1", "newbie", EOFError()])
        self.assertIn("bye!", out)
        app.db.cleanup.assert_called_once()

    def test_register_then_log_in(self):
        app = self.make_app()
        self.run_with_input(
            app.run,
            ["1", "newbie", "pw", "customer", "+1-555-555-5555", "2", "newbie", "pw", "1", "", "20", "9"],
        )
        self.assertEqual(self.scalar("SELECT role FROM Users WHERE login = 'newbie'"), "customer")


if __name__ == "__main__":
    unittest.main()
