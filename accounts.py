import sys
from dataclasses import dataclass
from enum import Enum
from functools import wraps

from termcolor import cprint, colored

from database import ExecutionError, StatementExecutor
from helpers import ask, ask_until, ask_int, ask_phone
from logger import get_logger

_logger = get_logger(__name__)


class Role(Enum):
    """user roles as stored in Users.role"""
    CUSTOMER = "customer"
    EMPLOYEE = "employee"
    MANAGER = "manager"


ROLES = tuple(r.value for r in Role)
EVERYONE = frozenset(Role)
STAFF = frozenset({Role.EMPLOYEE, Role.MANAGER})


@dataclass(frozen=True)
class Rule:
    """roles allowed to act on any target; owner lets every role act on its own login"""
    roles: frozenset
    owner: bool = False


# who may do what
POLICY: dict[str, Rule] = {
    "view_profile": Rule(STAFF, owner=True),
    "update_profile": Rule(STAFF, owner=True),
    "view_catalog": Rule(EVERYONE),
    "place_order": Rule(STAFF, owner=True),
    "view_all_orders": Rule(STAFF, owner=True),
    "view_recent_orders": Rule(STAFF, owner=True),
    "view_order_info": Rule(EVERYONE),
    "view_tracking_info": Rule(EVERYONE),
    "update_tracking_info": Rule(STAFF),
    "update_catalog": Rule(frozenset({Role.MANAGER})),
    "update_user": Rule(frozenset({Role.MANAGER})),
}


def may_enter(action: str, role: Role | None) -> bool:
    """role-level gate checked by the menu before a handler runs"""
    rule = POLICY[action]
    if role is None:
        return False
    return rule.owner or role in rule.roles


def permits(action: str, role: Role | None, actor: str, target: str | None = None) -> bool:
    """full check once the target login is known"""
    rule = POLICY[action]
    if role is None:
        return False
    if role in rule.roles:
        return True
    return rule.owner and target is not None and actor == target


@dataclass(frozen=True)
class Session:
    """the logged-in identity; role is looked up on demand, never cached"""
    login: str


def guarded(fn):
    """handler boundary: a failed statement is reported and the handler returns"""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ExecutionError as e:
            _logger.debug(f"{fn.__name__} failed: {e}")
            cprint(str(e), "red", file=sys.stderr)
            return None
    return wrapper


# accounts/auth
class AccountManager:
    """user registration, login and profile workflows"""
    def __init__(self, executor: StatementExecutor):
        self.executor = executor

    def role_of(self, login: str) -> Role | None:
        """fetch the current role of a login straight from Users"""
        rows = self.executor.query_rows("SELECT role FROM Users WHERE login = ?", (login,))
        if not rows or rows[0][0] is None:
            return None
        try:
            return Role(rows[0][0].strip().lower())
        except ValueError:
            _logger.debug(f"unknown role {rows[0][0]!r} for {login!r}")
            return None

    def user_exists(self, login: str) -> bool:
        """check if a login is registered"""
        return self.executor.query_count("SELECT login FROM Users WHERE login = ?", (login,)) > 0

    def authorize(self, action: str, session: Session, target: str | None = None) -> bool:
        """evaluate the policy for the session's current role"""
        return permits(action, self.role_of(session.login), session.login, target)

    def _target_login(self, session: Session, prompt: str) -> str:
        """prompt for a login; blank means the session's own"""
        return ask(f"{prompt} (press 'Enter' for your own)") or session.login

    @guarded
    def create_user(self):
        """register a new user (anyone may self-register)"""
        login = ask_until("input user login", bool, "login cannot be empty")
        password = ask_until("input user password", bool, "password cannot be empty", strip=False)
        role = ask_until("input user role", lambda r: r in ROLES, f"input a valid role ({', '.join(ROLES)})")
        phone = ask_phone()
        if self.user_exists(login):
            cprint("user login already exists. please choose a different login.", "red")
            return False
        self.executor.execute(
            "INSERT INTO Users (login, password, role, phoneNum) VALUES (?, ?, ?, ?)",
            (login, password, role, phone)
        )
        cprint("user has been created!", "green")
        return True

    @guarded
    def log_in(self) -> Session | None:
        """check credentials; returns the new session or none"""
        login = ask("input user login")
        password = ask("input user password", strip=False)
        if not login or not password:
            cprint("login and password cannot be empty. please try again.", "red")
            return None
        matches = self.executor.query_count(
            "SELECT login FROM Users WHERE login = ? AND password = ?",
            (login, password)
        )
        if matches != 1:
            cprint("invalid login", "red")
            return None
        cprint(f"logged in as {colored(login, 'yellow', attrs=['bold'])}", "green")
        return Session(login)

    @guarded
    def view_profile(self, session: Session):
        """print a user's row; customers may only view their own"""
        login = ask_until(
            "input user's login to view (press 'Enter' for your own)",
            lambda l: self.user_exists(l or session.login),
            "invalid login. please try again."
        ) or session.login
        if not self.authorize("view_profile", session, login):
            cprint("access denied: customers can only view their own profile.", "red")
            return
        self.executor.query_print("SELECT * FROM Users WHERE login = ?", (login,))

    @guarded
    def update_profile(self, session: Session):
        """change phone number and (optionally) password"""
        login = self._target_login(session, "input user login")
        if not self.authorize("update_profile", session, login):
            cprint("access denied: customers can only update their own profile.", "red")
            return
        if not self.user_exists(login):
            cprint("user not found", "red")
            return
        phone = ask_phone()
        password = ask("input new user password (press 'Enter' to keep the current one)", strip=False)
        if password:
            self.executor.execute(
                "UPDATE Users SET phoneNum = ?, password = ? WHERE login = ?",
                (phone, password, login)
            )
        else:
            self.executor.execute("UPDATE Users SET phoneNum = ? WHERE login = ?", (phone, login))
        cprint("profile has been updated!", "green")

    @guarded
    def update_user(self, session: Session):
        """manager edit of role, phone and overdue count"""
        login = ask("input user login")
        if not self.user_exists(login):
            cprint("user not found", "red")
            return
        role = ask_until("input new role", lambda r: r in ROLES, f"input a valid role ({', '.join(ROLES)})")
        phone = ask_phone("input new phone number")
        overdue = ask_int("input new number of overdue games", minimum=0)
        self.executor.execute(
            "UPDATE Users SET role = ?, phoneNum = ?, numOverDueGames = ? WHERE login = ?",
            (role, phone, overdue, login)
        )
        cprint("user information has been updated!", "green")
