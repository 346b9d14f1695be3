"""Tests for the whitelist file."""

from bidguard.whitelist import Whitelist


class TestWhitelist:
    def test_missing_file_is_empty(self, tmp_path):
        wl = Whitelist(tmp_path / "nope.txt")
        assert wl.load() == set()
        assert not wl.contains("bob")

    def test_any_whitespace_separates(self, tmp_path):
        path = tmp_path / "whitelist.txt"
        path.write_text("bob alice\n\ncarol\t dave\n")
        assert Whitelist(path).load() == {"alice", "bob", "carol", "dave"}

    def test_add_writes_sorted(self, tmp_path):
        path = tmp_path / "whitelist.txt"
        path.write_text("zoe\nbob\n")
        wl = Whitelist(path)

        wl.add("mia")
        wl.add("bob")

        assert path.read_text() == "bob\nmia\nzoe"
        assert "mia" in wl

    def test_remove(self, tmp_path):
        wl = Whitelist(tmp_path / "whitelist.txt")
        wl.add("bob")

        assert wl.remove("bob") is True
        assert wl.remove("bob") is False
        assert wl.load() == set()
