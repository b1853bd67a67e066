"""Tests for verbatim, autoescape, spaceless and debug blocks."""

from __future__ import annotations

import pytest

from sprig import Environment, TemplateSyntaxError

from .conftest import assert_contains, render


class TestVerbatim:
    def test_tags_inside_verbatim_are_literal(self, env: Environment) -> None:
        source = "{% verbatim %}{{ name }} {% if x %}{# c #}{% endverbatim %}"
        assert render(env, source, name="ignored") == "{{ name }} {% if x %}{# c #}"

    def test_raw_alias(self, env: Environment) -> None:
        assert render(env, "a{% raw %}{{ b }}{% endraw %}c") == "a{{ b }}c"

    def test_empty_verbatim(self, env: Environment) -> None:
        assert render(env, "x{% verbatim %}{% endverbatim %}y") == "xy"

    def test_unclosed_verbatim(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError, match="endverbatim"):
            env.from_string("{% verbatim %}{{ x }}")


class TestAutoescape:
    def test_autoescape_false_outputs_raw(self, env: Environment) -> None:
        source = "{% autoescape false %}{{ v }}{% endautoescape %}|{{ v }}"
        assert render(env, source, v="<b>") == "<b>|&lt;b&gt;"

    @pytest.mark.parametrize("mode", ["off", "no", "'false'"])
    def test_disabling_modes(self, env: Environment, mode: str) -> None:
        source = f"{{% autoescape {mode} %}}{{{{ v }}}}{{% endautoescape %}}"
        assert render(env, source, v="&") == "&"

    @pytest.mark.parametrize("mode", ["", "true", "on", "html"])
    def test_enabling_modes(self, env: Environment, mode: str) -> None:
        source = f"{{% autoescape {mode} %}}{{{{ v }}}}{{% endautoescape %}}"
        assert render(env, source, v="&") == "&amp;"

    def test_nested_autoescape_restores_outer_mode(self, env: Environment) -> None:
        source = (
            "{% autoescape false %}{% autoescape true %}{{ v }}{% endautoescape %}"
            "{{ v }}{% endautoescape %}"
        )
        assert render(env, source, v="<") == "&lt;<"

    def test_unknown_mode(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError, match="Unknown autoescape mode"):
            env.from_string("{% autoescape maybe %}{% endautoescape %}")

    def test_raw_output_delimiters(self, env: Environment) -> None:
        assert render(env, "{! v !}", v="<i>") == "<i>"


class TestSpaceless:
    def test_whitespace_between_tags_removed(self, env: Environment) -> None:
        source = "{% spaceless %}\n<ul>\n  <li>{{ a }}</li>\n  <li>b</li>\n</ul>\n{% endspaceless %}"
        assert render(env, source, a="x") == "<ul><li>x</li><li>b</li></ul>"

    def test_text_whitespace_kept(self, env: Environment) -> None:
        source = "{% spaceless %}<p>a  b</p> <p>c</p>{% endspaceless %}"
        assert render(env, source) == "<p>a  b</p><p>c</p>"

    def test_pre_content_preserved(self, env: Environment) -> None:
        source = "{% spaceless %}<div> <pre>  <b>x</b>  </pre> </div>{% endspaceless %}"
        assert render(env, source) == "<div><pre>  <b>x</b>  </pre></div>"

    def test_output_inside_is_still_escaped(self, env: Environment) -> None:
        source = "{% spaceless %}<p>{{ v }}</p>{% endspaceless %}"
        assert render(env, source, v="<") == "<p>&lt;</p>"

    def test_surrounding_output_untouched(self, env: Environment) -> None:
        source = "<a> {% spaceless %} <b> </b> {% endspaceless %} <c>"
        assert render(env, source) == "<a> <b></b> <c>"


class TestDebug:
    def test_debug_expression(self, env: Environment) -> None:
        result = render(env, "{% debug user %}", user={"name": "A"})
        assert_contains(
            result,
            'class="sprig-debug"',
            "<strong>Debug: user</strong>",
            "<pre>{&#039;name&#039;: &#039;A&#039;}</pre>",
        )

    def test_debug_attribute_label(self, env: Environment) -> None:
        result = render(env, "{% debug user.name %}", user={"name": "A"})
        assert_contains(result, "<strong>Debug: user.name</strong>", "<pre>&#039;A&#039;</pre>")

    def test_debug_whole_context(self, env: Environment) -> None:
        result = render(env, "{% debug %}", first=1, second="<two>")
        assert_contains(
            result,
            "<strong>Debug: all variables</strong>",
            "&#039;first&#039;: 1",
            "&lt;two&gt;",
        )

    def test_debug_output_is_not_double_escaped(self, env: Environment) -> None:
        result = render(env, "{% debug v %}", v="&")
        assert "&amp;amp;" not in result
        assert "&#039;&amp;&#039;" in result
