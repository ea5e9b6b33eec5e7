import uuid
from datetime import datetime, timedelta

from termcolor import cprint, colored

from accounts import AccountManager, Session, guarded
from database import StatementExecutor
from helpers import ask, ask_until, ask_int, ask_price, color_money, timestamp, due_date
from logger import get_logger

_logger = get_logger(__name__)

# constants
GENRES = (
    "sports", "action", "racing", "role-playing", "adventure", "simulation",
    "platform", "misc", "shooter", "puzzle", "fighting", "strategy",
)
RENTAL_PERIOD = timedelta(days=7)
RECENT_ORDER_LIMIT = 5
INITIAL_STATUS = "Processing"
INITIAL_LOCATION = "Warehouse"
DEFAULT_COURIER = "Default Courier"


def build_catalog_query(genre: str = "", min_price: float | None = None,
                        max_price: float | None = None) -> tuple[str, tuple]:
    """catalog scan narrowed by genre, then min price, then max price"""
    clauses, params = [], []
    if genre:
        clauses.append("LOWER(genre) = ?")
        params.append(genre.lower())
    if min_price is not None:
        clauses.append("price >= ?")
        params.append(min_price)
    if max_price is not None:
        clauses.append("price <= ?")
        params.append(max_price)
    sql = "SELECT * FROM Catalog"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY price ASC"
    return sql, tuple(params)


# catalog, orders, tracking
class RentalManager:
    """catalog browsing, rental orders and tracking workflows"""
    def __init__(self, executor: StatementExecutor, account_manager: AccountManager):
        self.executor = executor
        self.account_manager = account_manager

    def new_identifier(self, prefix: str, table: str, column: str) -> str:
        """random key that is not yet used in table.column"""
        while True:
            candidate = f"{prefix}{uuid.uuid4().hex[:16].upper()}"
            taken = self.executor.query_count(
                f"SELECT {column} FROM {table} WHERE {column} = ?", (candidate,)
            )
            if not taken:
                return candidate

    def game_price(self, game_id: str) -> float | None:
        """current catalog price or none if the game is unknown"""
        rows = self.executor.query_rows("SELECT price FROM Catalog WHERE gameID = ?", (game_id,))
        if not rows or rows[0][0] is None:
            return None
        return float(rows[0][0])

    def _ask_genre(self, prompt: str, optional: bool) -> str:
        """genre prompt, lowercased and checked against GENRES"""
        return ask_until(
            prompt,
            lambda g: (optional and not g) or g.lower() in GENRES,
            "invalid genre. please input one of: " + ", ".join(GENRES)
        ).lower()

    def _owned_target(self, action: str, session: Session, what: str) -> str | None:
        """prompt for a login and apply the owner rule"""
        login = ask("input user login (press 'Enter' for your own)") or session.login
        if not self.account_manager.authorize(action, session, login):
            cprint(f"access denied: customers can only {what}.", "red")
            return None
        return login

    @guarded
    def view_catalog(self, session: Session | None = None):
        """filter the catalog by genre / price range, cheapest first"""
        genre = self._ask_genre("input genre (press 'Enter' if all genres are desired)", optional=True)
        min_price = ask_price("input minimum price (press 'Enter' if no limit)", optional=True)
        max_price = ask_price("input maximum price (press 'Enter' if no limit)", optional=True)
        print()
        sql, params = build_catalog_query(genre, min_price, max_price)
        _logger.debug(f"catalog query: {sql} {params}")
        if not self.executor.query_print(sql, params):
            cprint("no games match those filters", "yellow")

    @guarded
    def place_order(self, session: Session):
        """rent one or more games; order, line items and tracking are written together"""
        login = self._owned_target("place_order", session, "place orders for themselves")
        if login is None:
            return
        if not self.account_manager.user_exists(login):
            cprint("user not found", "red")
            return
        count = ask_int("input number of games", minimum=1)
        lines: dict[str, int] = {}
        prices: dict[str, float] = {}
        for i in range(count):
            game_id = ask_until(
                f"input game ID ({i + 1}/{count})",
                lambda g: g in prices or self._remember_price(g, prices),
                "game ID not found in catalog. please try again."
            )
            units = ask_int("input units ordered", minimum=1)
            lines[game_id] = lines.get(game_id, 0) + units

        total = round(sum(prices[g] * units for g, units in lines.items()), 2)
        order_id = self.new_identifier("RO", "RentalOrder", "rentalOrderID")
        tracking_id = self.new_identifier("T", "TrackingInfo", "trackingID")
        now = datetime.now()

        with self.executor.transaction():
            self.executor.execute(
                """
                INSERT INTO RentalOrder (rentalOrderID, login, noOfGames, totalPrice, orderTimestamp, dueDate)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (order_id, login, len(lines), total, timestamp(now), due_date(now, RENTAL_PERIOD))
            )
            for game_id, units in lines.items():
                self.executor.execute(
                    "INSERT INTO GamesInOrder (rentalOrderID, gameID, unitsOrdered) VALUES (?, ?, ?)",
                    (order_id, game_id, units)
                )
            self.executor.execute(
                """
                INSERT INTO TrackingInfo (trackingID, rentalOrderID, status, currentLocation,
                                          courierName, additionalComments, lastUpdateDate)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (tracking_id, order_id, INITIAL_STATUS, INITIAL_LOCATION, DEFAULT_COURIER, "", timestamp(now))
            )
        _logger.debug(f"order {order_id} placed for {login} with {len(lines)} game(s)")
        cprint(f"order {colored(order_id, 'yellow')} has been placed with tracking ID {colored(tracking_id, 'yellow')}", "green")
        print(f"\ttotal price: {color_money(total)}")

    def _remember_price(self, game_id: str, prices: dict[str, float]) -> bool:
        """look up a game's price once; false when it is not in the catalog"""
        price = self.game_price(game_id)
        if price is None:
            return False
        prices[game_id] = price
        return True

    @guarded
    def view_all_orders(self, session: Session):
        """full rental history of a login, newest first"""
        login = self._owned_target("view_all_orders", session, "view their own rental order history")
        if login is None:
            return
        if not self.executor.query_print(
            "SELECT * FROM RentalOrder WHERE login = ? ORDER BY orderTimestamp DESC", (login,)
        ):
            cprint("no rental orders found", "yellow")

    @guarded
    def view_recent_orders(self, session: Session):
        """the latest few rental orders of a login"""
        login = self._owned_target("view_recent_orders", session, "view their own recent rental orders")
        if login is None:
            return
        if not self.executor.query_print(
            "SELECT * FROM RentalOrder WHERE login = ? ORDER BY orderTimestamp DESC LIMIT ?",
            (login, RECENT_ORDER_LIMIT)
        ):
            cprint("no rental orders found", "yellow")

    @guarded
    def view_order_info(self, session: Session | None = None):
        """order row with its tracking id, then the games in it"""
        order_id = ask("input rental order ID")
        found = self.executor.query_print(
            """
            SELECT R.*, T.trackingID
            FROM RentalOrder R
            LEFT JOIN TrackingInfo T ON R.rentalOrderID = T.rentalOrderID
            WHERE R.rentalOrderID = ?
            """,
            (order_id,)
        )
        if not found:
            cprint("rental order not found", "red")
            return
        print()
        self.executor.query_print("SELECT * FROM GamesInOrder WHERE rentalOrderID = ?", (order_id,))

    @guarded
    def view_tracking_info(self, session: Session | None = None):
        """tracking rows of a rental order"""
        order_id = ask("input rental order ID")
        if not self.executor.query_print("SELECT * FROM TrackingInfo WHERE rentalOrderID = ?", (order_id,)):
            cprint("no tracking information found", "yellow")

    @guarded
    def update_tracking_info(self, session: Session | None = None):
        """staff edit of a single tracking record"""
        tracking_id = ask("input tracking ID")
        if not self.executor.query_count(
            "SELECT trackingID FROM TrackingInfo WHERE trackingID = ?", (tracking_id,)
        ):
            cprint("tracking ID not found", "red")
            return
        status = ask("input new status")
        location = ask("input new (current) location")
        courier = ask("input new courier name")
        comments = ask("input new additional comments")
        self.executor.execute(
            """
            UPDATE TrackingInfo
            SET status = ?, currentLocation = ?, courierName = ?, additionalComments = ?, lastUpdateDate = ?
            WHERE trackingID = ?
            """,
            (status, location, courier, comments, timestamp(), tracking_id)
        )
        cprint("tracking information has been updated!", "green")

    @guarded
    def update_catalog(self, session: Session | None = None):
        """manager edit of a catalog entry"""
        game_id = ask("input game ID")
        if self.game_price(game_id) is None:
            cprint("game ID not found in catalog", "red")
            return
        name = ask("input new game name")
        genre = self._ask_genre("input new genre", optional=False)
        price = ask_price("input new price", minimum=0.01)
        description = ask("input new description")
        image_url = ask("input new image URL")
        self.executor.execute(
            """
            UPDATE Catalog
            SET gameName = ?, genre = ?, price = ?, description = ?, imageURL = ?
            WHERE gameID = ?
            """,
            (name, genre, price, description, image_url, game_id)
        )
        cprint("catalog has been updated!", "green")
