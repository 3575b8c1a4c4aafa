# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for transitive group resolution."""

import sys

import pytest

from google_connector import (
    DirectoryQueryFailed,
    DirectoryRoutingTable,
    GroupResolver,
    NoDirectoryRoute,
    filter_groups,
)
from tests.fakes import FakeDirectoryClient


def make_resolver(routes, logger):
    return GroupResolver(DirectoryRoutingTable(routes, logger=logger), logger=logger)


class TestResolveGroups:
    """Tests for GroupResolver.resolve_groups."""

    def test_transitive_expansion_follows_nested_groups(self, silent_logger):
        """Test nested groups are appended after their parent."""
        client = FakeDirectoryClient({
            "alice@example.com": [["eng@example.com"]],
            "eng@example.com": [["all@example.com"]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=True)

        assert groups == ["eng@example.com", "all@example.com"]

    def test_direct_only_when_transitive_disabled(self, silent_logger):
        """Test only direct memberships are returned without expansion."""
        client = FakeDirectoryClient({
            "alice@example.com": [["eng@example.com"]],
            "eng@example.com": [["all@example.com"]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=False)

        assert groups == ["eng@example.com"]
        assert client.calls == [("alice@example.com", "")]

    def test_cycle_terminates_and_lists_each_group_once(self, silent_logger):
        """Test a membership cycle A -> B -> A is expanded once per group."""
        client = FakeDirectoryClient({
            "alice@example.com": [["a@example.com"]],
            "a@example.com": [["b@example.com"]],
            "b@example.com": [["a@example.com"]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=True)

        assert groups == ["a@example.com", "b@example.com"]
        assert [member for member, _ in client.calls].count("a@example.com") == 1

    def test_self_membership_is_not_expanded_twice(self, silent_logger):
        """Test a group that lists itself does not recurse forever."""
        client = FakeDirectoryClient({
            "alice@example.com": [["loop@example.com"]],
            "loop@example.com": [["loop@example.com"]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        assert resolver.resolve_groups("alice@example.com", transitive=True) == ["loop@example.com"]

    def test_diamond_expands_shared_group_once(self, silent_logger):
        """Test a group reachable by two paths is queried once."""
        client = FakeDirectoryClient({
            "alice@example.com": [["left@example.com", "right@example.com"]],
            "left@example.com": [["top@example.com"]],
            "right@example.com": [["top@example.com"]],
            "top@example.com": [[]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=True)

        assert groups == ["left@example.com", "top@example.com", "right@example.com"]
        assert [member for member, _ in client.calls].count("top@example.com") == 1

    def test_pages_are_followed_until_token_is_empty(self, silent_logger):
        """Test every page is fetched and accumulated in order."""
        client = FakeDirectoryClient({
            "alice@example.com": [["g1@example.com"], ["g2@example.com"], ["g3@example.com"]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com")

        assert groups == ["g1@example.com", "g2@example.com", "g3@example.com"]
        assert client.calls == [
            ("alice@example.com", ""),
            ("alice@example.com", "1"),
            ("alice@example.com", "2"),
        ]

    def test_shared_visited_set_skips_known_groups(self, silent_logger):
        """Test groups already in the caller's visited set are skipped."""
        client = FakeDirectoryClient({"alice@example.com": [["eng@example.com", "ops@example.com"]]})
        resolver = make_resolver({"example.com": client}, silent_logger)
        visited = {"eng@example.com"}

        groups = resolver.resolve_groups("alice@example.com", visited=visited)

        assert groups == ["ops@example.com"]
        assert visited == {"eng@example.com", "ops@example.com"}

    def test_wildcard_route_used_for_unmapped_domain(self, silent_logger):
        """Test the "*" route serves domains with no explicit entry."""
        client = FakeDirectoryClient({"bob@other.org": [["staff@other.org"]]})
        resolver = make_resolver({"*": client}, silent_logger)

        assert resolver.resolve_groups("bob@other.org") == ["staff@other.org"]

    def test_nested_group_routed_by_its_own_domain(self, silent_logger):
        """Test a nested group in another tenant is listed by that tenant's client."""
        example = FakeDirectoryClient({"alice@example.com": [["partners@partner.org"]]})
        partner = FakeDirectoryClient({"partners@partner.org": [["everyone@partner.org"]]})
        resolver = make_resolver({"example.com": example, "partner.org": partner}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=True)

        assert groups == ["partners@partner.org", "everyone@partner.org"]
        assert partner.calls == [("partners@partner.org", ""), ("everyone@partner.org", "")]

    def test_missing_route_fails_before_any_query(self, silent_logger):
        """Test no route and no wildcard raises NoDirectoryRoute."""
        client = FakeDirectoryClient({})
        resolver = make_resolver({"example.com": client}, silent_logger)

        with pytest.raises(NoDirectoryRoute) as exc_info:
            resolver.resolve_groups("carol@unknown.net")

        assert exc_info.value.domain == "unknown.net"
        assert client.calls == []

    def test_query_failure_aborts_whole_resolution(self, silent_logger):
        """Test a failure during nested expansion is raised, not truncated."""
        client = FakeDirectoryClient(
            {
                "alice@example.com": [["eng@example.com"], ["ops@example.com"]],
                "eng@example.com": [["all@example.com"]],
            },
            fail_for="all@example.com",
        )
        resolver = make_resolver({"example.com": client}, silent_logger)

        with pytest.raises(DirectoryQueryFailed):
            resolver.resolve_groups("alice@example.com", transitive=True)

    def test_member_without_at_uses_wildcard(self, silent_logger):
        """Test a key without a domain is routed through "*"."""
        client = FakeDirectoryClient({"bob": [["staff@example.com"]]})
        resolver = make_resolver({"*": client}, silent_logger)

        assert resolver.resolve_groups("bob") == ["staff@example.com"]

    def test_deep_nesting_beyond_recursion_limit(self, silent_logger):
        """Test a nesting chain deeper than the interpreter recursion limit resolves."""
        depth = sys.getrecursionlimit() + 500
        memberships = {"alice@example.com": [["g0@example.com"]]}
        for i in range(depth - 1):
            memberships[f"g{i}@example.com"] = [[f"g{i + 1}@example.com"]]
        resolver = make_resolver({"example.com": FakeDirectoryClient(memberships)}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=True)

        assert len(groups) == depth
        assert groups[0] == "g0@example.com"
        assert groups[-1] == f"g{depth - 1}@example.com"

    def test_parent_pages_resume_after_nested_expansion(self, silent_logger):
        """Test a parent's next page is fetched after its first page's groups are expanded."""
        client = FakeDirectoryClient({
            "alice@example.com": [["a@example.com"], ["b@example.com"]],
            "a@example.com": [["a1@example.com"]],
        })
        resolver = make_resolver({"example.com": client}, silent_logger)

        groups = resolver.resolve_groups("alice@example.com", transitive=True)

        assert groups == ["a@example.com", "a1@example.com", "b@example.com"]
        assert client.calls[:3] == [
            ("alice@example.com", ""),
            ("a@example.com", ""),
            ("a1@example.com", ""),
        ]
        assert ("alice@example.com", "1") in client.calls


class TestFilterGroups:
    """Tests for filter_groups."""

    def test_intersection_preserves_resolved_order(self):
        """Test the result keeps the order of the resolved groups."""
        result = filter_groups(
            ["c@example.com", "a@example.com", "b@example.com"],
            ["b@example.com", "c@example.com"],
        )

        assert result == ["c@example.com", "b@example.com"]

    def test_no_overlap_returns_empty(self):
        """Test disjoint lists produce an empty result."""
        assert filter_groups(["a@example.com"], ["z@example.com"]) == []
