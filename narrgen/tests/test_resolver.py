"""
Tests for node id resolution against group paths.
"""

import pytest

from ..story_schema.resolver import SplitId, group_of, resolve_node_id, split_canonical_id


class TestResolveNodeId:
    """Tests for resolve_node_id."""

    def test_absolute(self):
        assert resolve_node_id("/chapters/intro/start", "any/where") == "chapters/intro/start"
        assert resolve_node_id("/start", "any/where") == "start"

    def test_root_slash_is_empty(self):
        assert resolve_node_id("/", "ch2") == ""

    def test_local(self):
        assert resolve_node_id("tutorial", "chapters/intro") == "chapters/intro/tutorial"
        assert resolve_node_id("start", "") == "start"

    def test_same_group(self):
        assert resolve_node_id("./tutorial", "chapters/intro") == "chapters/intro/tutorial"
        assert resolve_node_id("./", "chapters/intro") == "chapters/intro"
        assert resolve_node_id(".", "chapters/intro") == "chapters/intro"

    def test_parent_group(self):
        assert resolve_node_id("../main/battle", "chapters/intro") == "chapters/main/battle"
        assert resolve_node_id("../../start", "chapters/intro/sub") == "chapters/start"

    def test_parent_of_root_is_absorbed(self):
        assert resolve_node_id("../start", "") == "start"
        assert resolve_node_id("../../start", "ch1") == "start"

    def test_group_relative(self):
        assert resolve_node_id("sub/node", "ch2") == "ch2/sub/node"
        assert resolve_node_id("inner/path", "chapters/intro") == "chapters/intro/inner/path"
        assert resolve_node_id("top/path", "") == "top/path"

    @pytest.mark.parametrize("group", ["", "group", "a/b"])
    def test_empty_target(self, group):
        assert resolve_node_id("", group) == ""


class TestSplitCanonicalId:
    def test_split(self):
        assert split_canonical_id("chapters/intro/start") == SplitId(group="chapters/intro", local_id="start")
        assert split_canonical_id("start") == SplitId(group="", local_id="start")

    def test_group_of(self):
        assert group_of("chapters/intro/start") == "chapters/intro"
        assert group_of("start") == ""

    def test_split_then_resolve_is_stable(self):
        for node_id in ["chapters/intro/start", "start", "a/b"]:
            group, local_id = split_canonical_id(node_id)
            assert resolve_node_id(local_id, group) == node_id
