from pathlib import Path
import logging

log = logging.getLogger("bidguard.whitelist")


class Whitelist:
    """Trusted bidders, one user id per line. Re-read on every lookup."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> set[str]:
        if not self.path.exists():
            return set()
        return set(self.path.read_text(encoding="utf-8").split())

    def save(self, user_ids) -> None:
        self.path.write_text("\n".join(sorted(set(user_ids))), encoding="utf-8")

    def contains(self, user_id: str) -> bool:
        return user_id in self.load()

    __contains__ = contains

    def add(self, user_id: str) -> None:
        self.save(self.load() | {user_id})
        log.info("Whitelisted %s", user_id)

    def remove(self, user_id: str) -> bool:
        current = self.load()
        if user_id not in current:
            return False
        self.save(current - {user_id})
        log.info("Removed %s from whitelist", user_id)
        return True
