import math
from datetime import datetime, timedelta
from typing import Callable

from termcolor import cprint, colored

PHONE_LENGTH = 15
PHONE_FORMAT = "+1-999-999-9999"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# helpers
def safe_int(value: str, minimum: int | None = None):
    """return int value or none if invalid / below minimum"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        return v
    except ValueError:
        return None

def safe_float(value: str, minimum: float | None = None):
    """return float value or none if invalid / below minimum"""
    try:
        v = float(value)
        if not math.isfinite(v):
            return None
        if minimum is not None and v < minimum:
            return None
        return v
    except ValueError:
        return None

def color_money(amount: float) -> str:
    """format amount as green money string"""
    return colored(f"${amount:.2f}", "green")

def valid_phone(phone: str) -> bool:
    """phone numbers are accepted purely on length"""
    return len(phone) == PHONE_LENGTH

def ask(prompt: str, strip: bool = True) -> str:
    """single prompt, stripped unless strip is false"""
    answer = input(colored(f"\t{prompt}: ", "magenta"))
    return answer.strip() if strip else answer

def ask_until(prompt: str, accept: Callable[[str], bool], error: str, strip: bool = True) -> str:
    """reprompt until accept(answer) holds"""
    while True:
        answer = ask(prompt, strip)
        if accept(answer):
            return answer
        cprint(error, "red")

def ask_int(prompt: str, minimum: int | None = None) -> int:
    """reprompt until an integer (>= minimum) is given"""
    while True:
        v = safe_int(ask(prompt), minimum)
        if v is not None:
            return v
        hint = f" (>= {minimum})" if minimum is not None else ""
        cprint(f"please input a whole number{hint}", "red")

def ask_price(prompt: str, optional: bool = False, minimum: float | None = None):
    """reprompt until a number is given; blank returns none when optional"""
    while True:
        raw = ask(prompt)
        if optional and not raw:
            return None
        v = safe_float(raw, minimum)
        if v is not None:
            return v
        cprint("please input a valid price", "red")

def ask_phone(prompt: str = f"input user phone number (in the format: {PHONE_FORMAT})") -> str:
    """reprompt until the phone number has the right length"""
    return ask_until(prompt, valid_phone, "please input a phone number in the proper format")

def timestamp(when: datetime | None = None) -> str:
    """format a datetime the way every timestamp column stores it"""
    return (when or datetime.now()).strftime(TIMESTAMP_FORMAT)

def due_date(ordered: datetime, period: timedelta) -> str:
    """due date for a rental placed at `ordered`"""
    return timestamp(ordered + period)
