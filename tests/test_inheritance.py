"""Tests for template inheritance flattening."""

from __future__ import annotations

import pytest

from sprig import DictLoader, Environment, TemplateNotFoundError, TemplateRecursionError
from sprig.inheritance import InheritanceResolver
from sprig.lexer import tokenize
from sprig.nodes import Block, Extends, Node
from sprig.parser import Parser


def make_env(templates: dict[str, str], **kwargs) -> Environment:
    return Environment(loader=DictLoader(templates), **kwargs)


def walk(nodes):
    """Every node reachable from ``nodes`` through statement bodies."""
    for node in nodes:
        yield node
        for field in ("body", "else_", "empty"):
            yield from walk(getattr(node, field, ()) or ())
        for _test, body in getattr(node, "elif_", ()) or ():
            yield from walk(body)


class TestBlockOverrides:
    def test_child_overrides_parent_block(self) -> None:
        env = make_env(
            {
                "parent": "{% block content %}default{% endblock %}",
                "child": '{% extends "parent" %}{% block content %}override{% endblock %}',
            }
        )
        assert env.render("child") == "override"
        assert env.render("parent") == "default"

    def test_unoverridden_blocks_keep_defaults(self, env_with_loader: Environment) -> None:
        result = env_with_loader.render("child.html")
        assert result == "<html><head></head><body>Hello World</body></html>"

    def test_content_outside_blocks_discarded(self) -> None:
        env = make_env(
            {
                "base": "[{% block a %}A{% endblock %}]",
                "child": '{% extends "base" %}ignored{% block a %}B{% endblock %}also ignored',
            }
        )
        assert env.render("child") == "[B]"

    def test_three_level_chain_most_derived_wins(self) -> None:
        env = make_env(
            {
                "base": "{% block a %}a0{% endblock %}|{% block b %}b0{% endblock %}|"
                "{% block c %}c0{% endblock %}",
                "middle": '{% extends "base" %}{% block a %}a1{% endblock %}'
                "{% block b %}b1{% endblock %}",
                "leaf": '{% extends "middle" %}{% block a %}a2{% endblock %}',
            }
        )
        assert env.render("leaf") == "a2|b1|c0"
        assert env.render("middle") == "a1|b1|c0"

    def test_nested_block_override(self) -> None:
        env = make_env(
            {
                "base": "<{% block outer %}({% block inner %}i{% endblock %}){% endblock %}>",
                "inner_only": '{% extends "base" %}{% block inner %}I{% endblock %}',
                "outer_only": '{% extends "base" %}{% block outer %}O{% endblock %}',
            }
        )
        assert env.render("inner_only") == "<(I)>"
        assert env.render("outer_only") == "<O>"

    def test_child_defines_block_nested_in_its_override(self) -> None:
        env = make_env(
            {
                "base": "{% block outer %}x{% endblock %}",
                "child": '{% extends "base" %}{% block outer %}[{% block inner %}d{% endblock %}]'
                "{% endblock %}",
                "grandchild": '{% extends "child" %}{% block inner %}g{% endblock %}',
            }
        )
        assert env.render("child") == "[d]"
        assert env.render("grandchild") == "[g]"

    def test_blocks_inside_control_flow_are_resolved(self) -> None:
        env = make_env(
            {
                "base": "{% if show %}{% block a %}A{% endblock %}{% else %}-{% endif %}"
                "{% for x in xs %}{% block item %}{{ x }}{% endblock %}{% endfor %}",
                "child": '{% extends "base" %}{% block a %}B{% endblock %}'
                "{% block item %}<{{ x }}>{% endblock %}",
            }
        )
        assert env.render("child", {"show": True, "xs": [1, 2]}) == "B<1><2>"
        assert env.render("child", {"show": False, "xs": []}) == "-"

    def test_later_duplicate_block_in_same_template_wins(self) -> None:
        env = make_env(
            {
                "base": "{% block a %}base{% endblock %}",
                "child": '{% extends "base" %}{% block a %}first{% endblock %}'
                "{% block a %}second{% endblock %}",
            }
        )
        assert env.render("child") == "second"

    def test_template_without_extends_renders_block_defaults(self, env: Environment) -> None:
        result = env.from_string("a{% block x %}b{% block y %}c{% endblock %}{% endblock %}d")
        assert result.render() == "abcd"

    def test_override_sees_render_context(self) -> None:
        env = make_env(
            {
                "base": "<title>{% block title %}Site{% endblock %}</title>",
                "page": '{% extends "base" %}{% block title %}{{ title }} - Site{% endblock %}',
            }
        )
        assert env.render("page", {"title": "Home"}) == "<title>Home - Site</title>"

    def test_from_string_can_extend_loader_template(self) -> None:
        env = make_env({"base": "[{% block a %}{% endblock %}]"})
        template = env.from_string('{% extends "base" %}{% block a %}inline{% endblock %}')
        assert template.render() == "[inline]"


class TestResolverErrors:
    def test_missing_parent(self) -> None:
        env = make_env({"child": '{% extends "nope" %}'})
        with pytest.raises(TemplateNotFoundError):
            env.get_template("child")

    def test_circular_extends(self) -> None:
        env = make_env({"a": '{% extends "b" %}', "b": '{% extends "a" %}'})
        with pytest.raises(TemplateRecursionError) as exc_info:
            env.get_template("a")
        assert exc_info.value.chain == ["a", "b", "a"]
        assert "Circular" in str(exc_info.value)

    def test_self_extends(self) -> None:
        env = make_env({"a": '{% extends "a" %}'})
        with pytest.raises(TemplateRecursionError):
            env.get_template("a")

    def test_chain_deeper_than_limit(self) -> None:
        templates = {f"t{i}": f'{{% extends "t{i + 1}" %}}' for i in range(5)}
        templates["t5"] = "root"
        assert make_env(templates).render("t0") == "root"
        with pytest.raises(TemplateRecursionError) as exc_info:
            make_env(templates, max_depth=3).get_template("t0")
        assert exc_info.value.max_depth == 3


class TestResolver:
    """InheritanceResolver used directly with a custom loader callback."""

    SOURCES = {
        "base": "<{% block a %}A{% endblock %}{% if x %}{% block b %}B{% endblock %}{% endif %}>",
        "child": '{% extends "base" %}{% block b %}override{% endblock %}',
    }

    def parse(self, name: str):
        source = self.SOURCES[name]
        return Parser(tokenize(source), name, None, source).parse()

    def load(self, name: str):
        return self.parse(name), f"/templates/{name}"

    def test_flattened_tree_has_no_blocks_or_extends(self) -> None:
        flat, _ = InheritanceResolver(self.load).resolve(self.parse("child"), "child")
        assert flat.extends is None
        nodes: list[Node] = list(walk(flat.body))
        assert not any(isinstance(n, (Block, Extends)) for n in nodes)

    def test_parent_files_are_reported(self) -> None:
        _, files = InheritanceResolver(self.load).resolve(self.parse("child"), "child")
        assert files == ["/templates/base"]

    def test_root_template_passes_through(self) -> None:
        flat, files = InheritanceResolver(self.load).resolve(self.parse("base"), "base")
        assert files == []
        assert not any(isinstance(n, Block) for n in walk(flat.body))
