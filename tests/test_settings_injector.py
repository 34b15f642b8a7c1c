"""
Tests for app settings injection into policy templates.
"""

from structlog.testing import capture_logs

from b2c_ief.policy.settings_injector import PLACEHOLDER_PATTERN, inject_app_settings


class TestInjectAppSettings:
    """Test cases for inject_app_settings."""

    def test_single_placeholder(self):
        """Test a single placeholder is replaced."""
        template = '<Item Key="tenant">{settings:TenantName}</Item>'
        result = inject_app_settings(template, {"TenantName": "contoso"})
        assert result == '<Item Key="tenant">contoso</Item>'

    def test_multiple_placeholders(self):
        """Test several placeholders, including repeats, are all replaced."""
        template = "{settings:A}-{settings:B}-{settings:A}"
        result = inject_app_settings(template, {"A": "1", "B": "2"})
        assert result == "1-2-1"

    def test_case_insensitive_name_and_keyword(self):
        """Test the keyword and the setting name match regardless of case."""
        template = "key={Settings:Api_Key} other={SETTINGS:api_key}"
        result = inject_app_settings(template, {"API_KEY": "secret"})
        assert result == "key=secret other=secret"

    def test_unknown_setting_left_untouched(self):
        """Test placeholders with no matching setting are preserved verbatim."""
        template = "{settings:Known} {settings:Unknown}"
        result = inject_app_settings(template, {"Known": "yes"})
        assert result == "yes {settings:Unknown}"

    def test_template_without_placeholders(self):
        """Test a template with nothing to inject is returned unchanged."""
        template = "<TrustFrameworkPolicy PolicyId='B2C_1A_X' />"
        assert inject_app_settings(template, {"A": "1"}) == template

    def test_empty_settings_returns_template(self):
        """Test an empty mapping leaves the template alone."""
        template = "{settings:A}"
        assert inject_app_settings(template, {}) == template

    def test_null_and_empty_values_skipped(self):
        """Test None and empty values are skipped with a warning."""
        template = "{settings:Missing}|{settings:Blank}|{settings:Set}"
        with capture_logs() as logs:
            result = inject_app_settings(
                template, {"Missing": None, "Blank": "", "Set": "v"}
            )
        assert result == "{settings:Missing}|{settings:Blank}|v"
        warnings = [log for log in logs if log["log_level"] == "warning"]
        assert {log["key"] for log in warnings} == {"Missing", "Blank"}

    def test_values_are_inserted_literally(self):
        """Test regex replacement syntax in values is not interpreted."""
        template = "{settings:A}|{settings:B}"
        result = inject_app_settings(template, {"A": r"$1 \1 \g<0>", "B": "a\\b"})
        assert result == r"$1 \1 \g<0>|a\b"

    def test_inserted_text_not_rescanned(self):
        """Test a value that looks like a placeholder is not expanded again."""
        template = "{settings:Outer}"
        result = inject_app_settings(
            template, {"Outer": "{settings:Inner}", "Inner": "nested"}
        )
        assert result == "{settings:Inner}"

    def test_idempotent_once_all_settings_known(self):
        """Test injecting twice with the same settings changes nothing more."""
        settings = {"TenantName": "contoso", "AppId": "1234"}
        template = "{settings:TenantName}.onmicrosoft.com/{settings:AppId}"
        once = inject_app_settings(template, settings)
        assert inject_app_settings(once, settings) == once

    def test_case_collision_last_wins(self):
        """Test names differing only by case resolve to the last one given."""
        with capture_logs() as logs:
            result = inject_app_settings(
                "{settings:name}", {"Name": "first", "NAME": "second"}
            )
        assert result == "second"
        assert any("collide" in log["event"] for log in logs)

    def test_placeholder_pattern_rejects_braces_in_name(self):
        """Test the placeholder name cannot span nested braces."""
        assert PLACEHOLDER_PATTERN.search("{settings:{x}}") is None

    def test_no_full_unicode_folding(self):
        """Test names only match under simple lower-casing, not full case folding."""
        template = "{settings:SS}|{settings:ß}"
        assert inject_app_settings(template, {"ß": "v"}) == "{settings:SS}|v"
