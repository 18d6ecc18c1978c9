"""Tests for chapter template resolution and the template registry (F2)."""

import pytest

from bidding.core.template_resolver import (
    TEMPLATE_RULES,
    TemplateRule,
    match_template_id,
    resolve_template,
)
from bidding.templates.registry import (
    clear_cache,
    get_template,
    list_templates,
)


class TestMatchTemplateId:
    """Tests for rule matching."""

    def test_bid_letter(self):
        """投标函 maps to the bid letter."""
        assert match_template_id("投标函") == "bid_letter"

    def test_bid_letter_misspelling(self):
        """The common misspelling 投标涵 also maps to the bid letter."""
        assert match_template_id("第一章 投标涵") == "bid_letter"

    def test_power_of_attorney(self):
        """授权委托书 maps to the power of attorney."""
        assert match_template_id("法定代表人授权委托书") == "power_of_attorney"

    def test_short_keyword(self):
        """委托书 alone is enough."""
        assert match_template_id("委托书") == "power_of_attorney"

    def test_whitespace_ignored(self):
        """All whitespace is stripped before matching."""
        assert match_template_id(" 2.1  投 标\t函\n") == "bid_letter"

    def test_rule_order(self):
        """First rule wins when several match."""
        assert match_template_id("投标函及授权委托书") == "bid_letter"

    def test_no_match(self):
        """Unknown titles match nothing."""
        assert match_template_id("验收报告") is None

    def test_blank_title(self):
        """Blank titles match nothing."""
        assert match_template_id("   ") is None
        assert match_template_id("") is None

    def test_latin_case_insensitive(self):
        """Latin fragments compare case-insensitively."""
        rules = (TemplateRule("bid_letter", ("Bid Letter",)),)
        assert match_template_id("BID letter 附件", rules) == "bid_letter"

    def test_rule_table_is_data(self):
        """Rule table lists the shipped templates in order."""
        assert [r.template_id for r in TEMPLATE_RULES] == ["bid_letter", "power_of_attorney"]


class TestResolveTemplate:
    """Tests for resolve_template."""

    def test_bid_letter_placeholders(self):
        """Bid letter carries its placeholder tokens."""
        text = resolve_template("投标函")
        assert text
        for token in ("[项目名称]", "[项目编号]", "[投标人名称]"):
            assert token in text

    def test_power_of_attorney_placeholders(self):
        """Power of attorney carries its placeholder tokens and powers list."""
        text = resolve_template("授权委托书")
        for token in ("[投标人全称]", "[法定代表人姓名]", "[被授权人姓名]"):
            assert token in text
        assert "1." in text and "2." in text

    def test_unknown_title_empty(self):
        """No rule -> empty string."""
        assert resolve_template("验收报告") == ""

    def test_custom_rules_use_registry(self):
        """A rule pointing at a registered template resolves through the registry."""
        rules = (TemplateRule("power_of_attorney", ("授权书",)),)
        assert resolve_template("法定代表人授权书", rules) == get_template("power_of_attorney")


class TestTemplateRegistry:
    """Tests for the packaged template library."""

    def test_list_templates(self):
        """Shipped templates are listed."""
        templates = list_templates()
        assert "bid_letter" in templates
        assert "power_of_attorney" in templates
        assert templates == sorted(templates)

    def test_get_template_missing_raises(self):
        """FileNotFoundError for unknown ids."""
        with pytest.raises(FileNotFoundError):
            get_template("nonexistent_template")

    def test_cached_and_uncached_match(self):
        """Cache returns the same text as a fresh read."""
        clear_cache()
        cached = get_template("bid_letter")
        assert cached == get_template("bid_letter", use_cache=False)

    def test_no_trailing_newline(self):
        """Trailing newlines are stripped."""
        assert not get_template("bid_letter").endswith("\n")
