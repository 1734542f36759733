"""
Tests for core.composite.filters — LDAP filter parsing and matching.
"""

import pytest

from core.composite.filters import Filter, FilterOp, InvalidFilterError
from core.composite.versions import Version


SERVICE = {
    "objectClass": ["org.example.X", "org.example.Base"],
    "language": "en_US",
    "ranking": 12,
    "weight": 0.5,
    "enabled": True,
    "version": Version(1, 3),
    "name": "Hello World",
}


class TestFilterParse:
    def test_simple_equality(self):
        f = Filter.parse("(objectClass=org.example.X)")
        assert f.op == FilterOp.EQUAL
        assert f.attribute == "objectClass"
        assert f.value == "org.example.X"
        assert str(f) == "(objectClass=org.example.X)"

    def test_composite_operands(self):
        f = Filter.parse("(&(a=1)(|(b=2)(c=3))(!(d=4)))")
        assert f.op == FilterOp.AND
        assert len(f.operands) == 3
        assert f.operands[1].op == FilterOp.OR
        assert f.operands[2].op == FilterOp.NOT

    def test_presence_and_substring(self):
        assert Filter.parse("(language=*)").op == FilterOp.PRESENT
        f = Filter.parse("(language=en*)")
        assert f.op == FilterOp.SUBSTRING
        assert f.value == ("en", None)

    @pytest.mark.parametrize("text", [
        "",
        "objectClass=X",
        "(objectClass=X",
        "(&)",
        "(=X)",
        "(a=b))",
        "(a>=b*)",
        "(a?b)",
    ])
    def test_malformed(self, text):
        with pytest.raises(InvalidFilterError):
            Filter.parse(text)

    def test_error_carries_position(self):
        with pytest.raises(InvalidFilterError) as exc:
            Filter.parse("(a=b")
        assert exc.value.position == 4


class TestFilterMatch:
    def test_keys_are_case_insensitive(self):
        assert Filter.parse("(OBJECTCLASS=org.example.X)").match(SERVICE)

    def test_multi_valued_any_element(self):
        assert Filter.parse("(objectClass=org.example.Base)").match(SERVICE)
        assert not Filter.parse("(objectClass=org.example.Y)").match(SERVICE)

    def test_boolean_operators(self):
        assert Filter.parse(
            "(&(objectClass=org.example.X)(language=en*))"
        ).match(SERVICE)
        assert Filter.parse("(|(language=fr)(ranking=12))").match(SERVICE)
        assert Filter.parse("(!(language=fr))").match(SERVICE)

    def test_presence(self):
        assert Filter.parse("(ranking=*)").match(SERVICE)
        assert not Filter.parse("(missing=*)").match(SERVICE)

    def test_substrings(self):
        assert Filter.parse("(name=*World)").match(SERVICE)
        assert Filter.parse("(name=H*o*d)").match(SERVICE)
        assert not Filter.parse("(name=*Moon*)").match(SERVICE)
        assert not Filter.parse("(name=a*c)").match({"name": "ab"})

    def test_numeric_comparison(self):
        assert Filter.parse("(ranking>=10)").match(SERVICE)
        assert not Filter.parse("(ranking<=5)").match(SERVICE)
        assert Filter.parse("(weight<=0.75)").match(SERVICE)
        assert Filter.parse("(ranking=12)").match(SERVICE)

    def test_uncoercible_operand_does_not_match(self):
        assert not Filter.parse("(ranking>=many)").match(SERVICE)

    def test_boolean_and_version_values(self):
        assert Filter.parse("(enabled=true)").match(SERVICE)
        assert Filter.parse("(version>=1.2)").match(SERVICE)
        assert not Filter.parse("(version>=2)").match(SERVICE)

    def test_approximate(self):
        assert Filter.parse("(name~=helloworld)").match(SERVICE)

    def test_escaped_star_is_literal(self):
        f = Filter.parse(r"(name=a\*b)")
        assert f.op == FilterOp.EQUAL
        assert f.match({"name": "a*b"})
        assert not f.match({"name": "axb"})

    def test_empty_properties(self):
        assert not Filter.parse("(a=1)").match(None)
        assert Filter.parse("(!(a=1))").match({})
