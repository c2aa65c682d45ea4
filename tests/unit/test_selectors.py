"""Unit tests for label selectors, CIDR helpers and label comparison."""

import pytest

from netloom.core import selectors
from netloom.core.models import IPBlock, LabelSelector, LabelSelectorRequirement, SelectorOperator
from netloom.core.models.errors import InvalidCIDRError, InvalidPolicyError

LABEL_SETS = [
    {},
    {"a": "1"},
    {"a": "2"},
    {"a": "1", "b": "x"},
    {"b": "x"},
]


class TestLabelSelector:
    """Test selector evaluation."""

    def test_empty_selector_matches_everything(self):
        assert selectors.is_empty(LabelSelector())
        for labels in LABEL_SETS:
            assert selectors.matches(LabelSelector(), labels)

    def test_match_labels(self):
        selector = LabelSelector(match_labels={"a": "1"})

        assert selectors.matches(selector, {"a": "1", "b": "x"})
        assert not selectors.matches(selector, {"a": "2"})
        assert not selectors.matches(selector, {})

    def test_operators(self):
        labels = {"a": "1"}

        assert selectors.matches_requirement(LabelSelectorRequirement("a", SelectorOperator.EXISTS), labels)
        assert not selectors.matches_requirement(LabelSelectorRequirement("b", SelectorOperator.EXISTS), labels)
        assert selectors.matches_requirement(LabelSelectorRequirement("b", SelectorOperator.DOES_NOT_EXIST), labels)
        assert selectors.matches_requirement(LabelSelectorRequirement("a", SelectorOperator.IN, ("1", "2")), labels)
        assert not selectors.matches_requirement(LabelSelectorRequirement("a", SelectorOperator.NOT_IN, ("1",)), labels)
        # NotIn matches when the key is absent
        assert selectors.matches_requirement(LabelSelectorRequirement("b", SelectorOperator.NOT_IN, ("1",)), labels)

    def test_labels_and_expressions_are_conjunctive(self):
        selector = LabelSelector(
            match_labels={"a": "1"},
            match_expressions=(LabelSelectorRequirement("b", SelectorOperator.EXISTS),),
        )

        assert selectors.matches(selector, {"a": "1", "b": "x"})
        assert not selectors.matches(selector, {"a": "1"})

    def test_equivalent_selectors_behave_identically(self):
        by_labels = LabelSelector(match_labels={"a": "1"})
        by_expression = LabelSelector(
            match_expressions=(LabelSelectorRequirement("a", SelectorOperator.IN, ("1",)),)
        )

        for labels in LABEL_SETS:
            assert selectors.matches(by_labels, labels) == selectors.matches(by_expression, labels)

    def test_serialize_ignores_declaration_order(self):
        first = LabelSelector(
            match_labels={"b": "2", "a": "1"},
            match_expressions=(
                LabelSelectorRequirement("z", SelectorOperator.IN, ("2", "1")),
                LabelSelectorRequirement("c", SelectorOperator.EXISTS),
            ),
        )
        second = LabelSelector(
            match_labels={"a": "1", "b": "2"},
            match_expressions=(
                LabelSelectorRequirement("c", SelectorOperator.EXISTS),
                LabelSelectorRequirement("z", SelectorOperator.IN, ("1", "2")),
            ),
        )

        assert selectors.serialize(first) == selectors.serialize(second)
        assert selectors.serialize(LabelSelector()) == "{}"

    def test_table_lines(self):
        selector = LabelSelector(
            match_labels={"pod": "a"},
            match_expressions=(
                LabelSelectorRequirement("tier", SelectorOperator.IN, ("web", "api")),
                LabelSelectorRequirement("team", SelectorOperator.EXISTS),
            ),
        )

        assert selectors.table_lines(LabelSelector()) == ["all"]
        assert selectors.table_lines(selector) == ["pod: a", "team Exists", "tier In [api, web]"]


class TestCIDR:
    """Test CIDR parsing and containment."""

    def test_host_bits_are_accepted(self):
        assert str(selectors.parse_cidr("10.1.2.3/8")) == "10.0.0.0/8"

    def test_invalid_cidr(self):
        with pytest.raises(InvalidCIDRError, match="not-a-cidr"):
            selectors.parse_cidr("not-a-cidr")

    def test_contains_with_except(self):
        block = IPBlock(cidr="10.0.0.0/8", except_=("10.1.0.0/16",))

        assert selectors.cidr_contains(block, "10.2.3.4")
        assert not selectors.cidr_contains(block, "10.1.2.3")
        assert not selectors.cidr_contains(block, "192.168.1.1")

    def test_contains_rejects_other_family_and_missing_ip(self):
        block = IPBlock(cidr="10.0.0.0/8")

        assert not selectors.cidr_contains(block, "::1")
        assert not selectors.cidr_contains(block, "")
        assert not selectors.cidr_contains(block, "garbage")

    def test_ipv6(self):
        block = IPBlock(cidr="fd00::/8", except_=("fd00:1::/32",))

        assert selectors.cidr_contains(block, "fd00:2::1")
        assert not selectors.cidr_contains(block, "fd00:1::1")

    def test_validate_ip_block(self):
        selectors.validate_ip_block(IPBlock(cidr="10.0.0.0/8", except_=("10.1.0.0/16",)))

        with pytest.raises(InvalidPolicyError, match="strictly inside"):
            selectors.validate_ip_block(IPBlock(cidr="10.0.0.0/16", except_=("10.0.0.0/8",)), "[NPv1] x/p")
        with pytest.raises(InvalidPolicyError, match="strictly inside"):
            selectors.validate_ip_block(IPBlock(cidr="10.0.0.0/8", except_=("10.0.0.0/8",)))
        with pytest.raises(InvalidPolicyError, match="address family"):
            selectors.validate_ip_block(IPBlock(cidr="10.0.0.0/8", except_=("fd00::/8",)))

    def test_invalid_cidr_names_policy(self):
        with pytest.raises(InvalidCIDRError) as exc_info:
            selectors.validate_ip_block(IPBlock(cidr="10.0.0.0/99"), "[NPv1] x/p")

        assert exc_info.value.policy_id == "[NPv1] x/p"
        assert str(exc_info.value).startswith("[NPv1] x/p: ")


class TestSameLabels:
    """Test same and not-same label comparison."""

    def test_same_labels(self):
        assert selectors.same_labels(["tier"], {"tier": "1"}, {"tier": "1", "ns": "x"})
        assert not selectors.same_labels(["tier"], {"tier": "2"}, {"tier": "1"})
        assert not selectors.same_labels(["tier"], {}, {"tier": "1"})
        assert not selectors.same_labels(["tier"], {"tier": "1"}, {})

    def test_not_same_labels(self):
        assert selectors.not_same_labels(["tier"], {"tier": "2"}, {"tier": "1"})
        assert not selectors.not_same_labels(["tier"], {"tier": "1"}, {"tier": "1"})
        assert not selectors.not_same_labels(["tier"], {}, {"tier": "1"})
        assert selectors.not_same_labels(["tier", "zone"], {"tier": "1", "zone": "a"}, {"tier": "1", "zone": "b"})

    def test_empty_key_list_matches_nothing(self):
        assert not selectors.same_labels([], {"a": "1"}, {"a": "1"})
        assert not selectors.not_same_labels([], {"a": "1"}, {"a": "2"})
