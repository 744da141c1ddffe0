# layers/naming.py
import re
from collections import defaultdict

_uid_counters = defaultdict(int)


def to_snake_case(name):
    s = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s).lower()


def get_uid(prefix):
    """
    Display label generator: dense_1, dense_2, ...
    Labels are for summaries and logs only; nothing relies on them for identity.
    """
    _uid_counters[prefix] += 1
    return f"{prefix}_{_uid_counters[prefix]}"


def reset_uids():
    _uid_counters.clear()
