"""Test state value matchers."""

from state_machines.core.matchers import (
    ALL,
    SAME,
    AllMatcher,
    BlacklistMatcher,
    LoopbackMatcher,
    WhitelistMatcher,
    build_matcher
)


class TestAllMatcher:
    """Test matching every state."""

    def test_matches_anything(self):
        """Test any value matches."""
        assert ALL.matches("parked")
        assert ALL.matches(None)

    def test_filter_keeps_every_value(self):
        """Test filter returns the whole domain in order."""
        assert ALL.filter(["parked", "idling"]) == ["parked", "idling"]

    def test_subtraction_builds_blacklist(self):
        """Test ALL minus states excludes those states."""
        matcher = ALL - "idling"
        assert isinstance(matcher, BlacklistMatcher)
        assert matcher.values == ["idling"]
        assert matcher.matches("parked")
        assert not matcher.matches("idling")

    def test_description(self):
        """Test description."""
        assert ALL.description() == "all"
        assert AllMatcher() == ALL


class TestWhitelistMatcher:
    """Test matching explicit states."""

    def test_matches_listed_values(self):
        """Test only listed values match."""
        matcher = WhitelistMatcher(["parked", "idling"])
        assert matcher.matches("idling")
        assert not matcher.matches("first_gear")

    def test_filter_preserves_domain_order(self):
        """Test filter keeps the order of the supplied domain."""
        matcher = WhitelistMatcher(["parked", "idling"])
        assert matcher.filter(["idling", "first_gear", "parked"]) == ["idling", "parked"]

    def test_description(self):
        """Test single and multiple value descriptions."""
        assert WhitelistMatcher("parked").description() == "'parked'"
        assert WhitelistMatcher(["parked", "idling"]).description() == "['parked', 'idling']"


class TestBlacklistMatcher:
    """Test matching all but some states."""

    def test_filter_excludes_values(self):
        """Test filter drops blacklisted values."""
        matcher = ALL - "idling"
        assert matcher.filter(["parked", "idling", "first_gear"]) == ["parked", "first_gear"]

    def test_description(self):
        """Test single and multiple value descriptions."""
        assert (ALL - "idling").description() == "all - 'idling'"
        assert (ALL - ["idling", "parked"]).description() == "all - ['idling', 'parked']"

    def test_equality(self):
        """Test matchers with the same values are equal."""
        assert BlacklistMatcher("idling") == BlacklistMatcher(["idling"])
        assert hash(BlacklistMatcher("idling")) == hash(BlacklistMatcher(["idling"]))
        assert BlacklistMatcher("idling") != WhitelistMatcher("idling")


class TestLoopbackMatcher:
    """Test matching the state transitioned from."""

    def test_matches_from_state(self):
        """Test only the context's from state matches."""
        assert SAME.matches("parked", {"from": "parked"})
        assert not SAME.matches("parked", {"from": "idling"})

    def test_requires_context(self):
        """Test nothing matches without a context."""
        assert not SAME.matches("parked")

    def test_description(self):
        """Test description."""
        assert SAME.description() == "same"
        assert isinstance(SAME, LoopbackMatcher)


class TestBuildMatcher:
    """Test wrapping raw requirements."""

    def test_wraps_values(self):
        """Test raw values become whitelists."""
        assert build_matcher("parked") == WhitelistMatcher("parked")
        assert build_matcher(["parked", "idling"]) == WhitelistMatcher(["parked", "idling"])

    def test_keeps_matchers(self):
        """Test matchers are returned unchanged."""
        assert build_matcher(ALL) is ALL
        assert build_matcher(SAME) is SAME
