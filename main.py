#!/usr/bin/env python3

# game rental store client
# usage: main.py <dbname> <port> <user>

import signal
import sys
from typing import Callable

from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

from accounts import AccountManager, Session, may_enter
from database import DatabaseManager, ExecutionError
from helpers import safe_int
from logger import get_logger
from rentals import RentalManager

# fix windows terminal misinterpreting ansi escape sequences
enable_windows_ansi_interpretation()

_logger = get_logger(__name__)

USAGE = "usage: main.py <dbname> <port> <user>"

# returned by logout to end the options loop
LOGGED_OUT = object()

# menu infrastructure
class MenuOption:
    """bind a menu number to a handler; action names the policy entry guarding it"""
    def __init__(self, choice: int, label: str, function: Callable, action: str | None = None):
        self.choice = choice
        self.label = label
        self._fn = function
        self.action = action

    def execute(self, *args):
        """invoke the handler"""
        return self._fn(*args)

class Menu:
    """numbered menu: render, read a choice, dispatch"""
    def __init__(self, title: str, options: list[MenuOption], account_manager: AccountManager | None = None):
        self.title = title
        self.options = options
        self.account_manager = account_manager

    def show(self):
        """print the title box and every option"""
        bar = "-" * (len(self.title) + 2)
        print(f"\n\n {bar}\n| {self.title.upper()} |\n {bar}\n")
        for opt in self.options:
            print(f"{opt.choice}. {opt.label}")
        print()

    @staticmethod
    def read_choice() -> int:
        """read an integer choice, reprompting until one is given"""
        while True:
            choice = safe_int(input(colored("please make your choice: ", "blue")).strip())
            if choice is not None:
                return choice
            cprint("your input is invalid!", "red")

    def dispatch(self, choice: int, *args):
        """run the option for choice after the role gate"""
        opt = next((o for o in self.options if o.choice == choice), None)
        if opt is None:
            cprint("unrecognized choice!", "red")
            return None
        if opt.action is not None and self.account_manager is not None:
            session: Session = args[0]
            try:
                role = self.account_manager.role_of(session.login)
            except ExecutionError as e:
                cprint(str(e), "red", file=sys.stderr)
                return None
            if not may_enter(opt.action, role):
                cprint(f"access denied: your role cannot {opt.label.lower()}.", "red")
                return None
        return opt.execute(*args)

# application wiring
class Application:
    """bootstrap objects & run the menus"""
    def __init__(self, dbname: str, port: int, user: str):
        self.db = DatabaseManager(dbname, port, user)
        self.account_manager = AccountManager(self.db.executor)
        self.rental_manager = RentalManager(self.db.executor, self.account_manager)
        self.running = True

        self.main_menu = Menu("main menu", [
            MenuOption(1, "Create user", self.account_manager.create_user),
            MenuOption(2, "Log in", self.account_manager.log_in),
            MenuOption(9, "< EXIT", self.exit),
        ])
        rm = self.rental_manager
        am = self.account_manager
        self.options_menu = Menu("options", [
            MenuOption(1, "View Profile", am.view_profile, "view_profile"),
            MenuOption(2, "Update Profile", am.update_profile, "update_profile"),
            MenuOption(3, "View Catalog", rm.view_catalog, "view_catalog"),
            MenuOption(4, "Place Rental Order", rm.place_order, "place_order"),
            MenuOption(5, "View Full Rental Order History", rm.view_all_orders, "view_all_orders"),
            MenuOption(6, "View Past 5 Rental Orders", rm.view_recent_orders, "view_recent_orders"),
            MenuOption(7, "View Rental Order Information", rm.view_order_info, "view_order_info"),
            MenuOption(8, "View Tracking Information", rm.view_tracking_info, "view_tracking_info"),
            # employees & managers
            MenuOption(9, "Update Tracking Information", rm.update_tracking_info, "update_tracking_info"),
            # managers
            MenuOption(10, "Update Catalog", rm.update_catalog, "update_catalog"),
            MenuOption(11, "Update User", am.update_user, "update_user"),
            MenuOption(20, "Log out", self.logout),
        ], am)

    @staticmethod
    def greeting():
        """print the banner"""
        cprint("""
****************************************
***     game rental user interface   ***
****************************************
""", "green", attrs=["bold"])

    def exit(self):
        """leave the main loop"""
        self.running = False

    @staticmethod
    def logout(session: Session):
        """end the session"""
        cprint(f"logged out {session.login}", "green")
        return LOGGED_OUT

    def user_loop(self, session: Session):
        """options menu until logout"""
        _logger.debug(f"session started for {session.login}")
        while True:
            self.options_menu.show()
            choice = self.options_menu.read_choice()
            if self.options_menu.dispatch(choice, session) is LOGGED_OUT:
                return

    def run(self):
        """main loop; always disconnects on the way out"""
        self.greeting()
        try:
            while self.running:
                self.main_menu.show()
                session = self.main_menu.dispatch(self.main_menu.read_choice())
                if isinstance(session, Session):
                    self.user_loop(session)
        except EOFError:
            print()
        finally:
            print("disconnecting from database...", end="")
            self.db.cleanup()
            print("done\n\nbye!")

# entry point
def parse_args(args: list[str]):
    """validate <dbname> <port> <user>; none when malformed"""
    if len(args) != 3:
        return None
    dbname, port, user = args
    port = safe_int(port, minimum=1)
    if port is None:
        return None
    return dbname, port, user

def main():
    """entrypoint wrapper"""
    parsed = parse_args(sys.argv[1:])
    if parsed is None:
        cprint(USAGE, "red", file=sys.stderr)
        sys.exit(1)
    Application(*parsed).run()

# signal handler
class SignalHandler:
    """custom ctrl+c handler to nag user politely"""
    @staticmethod
    def sigint(_, __):
        """handle ctrl+c"""
        cprint("\nnext time, use 9 to exit!", "yellow")
        sys.exit(0)

signal.signal(signal.SIGINT, SignalHandler.sigint)

if __name__ == "__main__":
    main()
