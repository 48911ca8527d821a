EVENTTIMER_KEY_PREFIX = "__eventtimer__"


class Key:
    """
    Helper class to manage the Redis key formats of an event table.

    :param str table_name: Name of the event table, a plain identifier.
    """

    def __init__(self, table_name: str) -> None:
        if not table_name:
            raise ValueError("Table name cannot be an empty string or None")
        if ":" in table_name:
            raise ValueError("Table name cannot contain ':'")
        self.prefix = f"{EVENTTIMER_KEY_PREFIX}:{table_name}:"

    def event(self, event_id: int) -> str:
        return f"{self.prefix}event:{event_id}"

    def schedule(self) -> str:
        return f"{self.prefix}schedule"

    def dynamic(self) -> str:
        return f"{self.prefix}dynamic"

    def id_sequence(self) -> str:
        return f"{self.prefix}id_seq"


def schedule_member(timestamp: str, event_id: int) -> str:
    """
    Sorted set member ordering events by timestamp, then by id.

    Members all have score 0, so Redis orders them lexicographically; the
    zero-padded id keeps ties in insertion order.
    """
    return f"{timestamp}|{event_id:012d}"


def member_event_id(member: str) -> int:
    return int(member.rsplit("|", 1)[1])
