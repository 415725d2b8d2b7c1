"""
Tests for conversation modes, prompts and site config models
"""

import json

from roofsite.chat.models import ChatRequest, SiteConfig, merge_site_config, site_config_issues
from roofsite.chat.modes import (
    ONBOARDING_GREETING,
    EditMode,
    OnboardingMode,
    resolve_mode,
)


class TestResolveMode:

    def test_default_is_onboarding(self):
        assert isinstance(resolve_mode(None), OnboardingMode)

    def test_edit_with_config(self):
        mode = resolve_mode("edit", {"businessName": "ABC"})
        assert isinstance(mode, EditMode)
        assert mode.current_config == {"businessName": "ABC"}

    def test_edit_without_config_falls_back(self):
        assert isinstance(resolve_mode("edit", None), OnboardingMode)

    def test_edit_with_empty_config(self):
        mode = resolve_mode("edit", {})
        assert isinstance(mode, EditMode)
        assert mode.current_config == {}

    def test_unknown_mode_falls_back(self):
        assert isinstance(resolve_mode("freestyle", {"a": 1}), OnboardingMode)


class TestPrompts:

    def test_onboarding_prompt(self):
        mode = OnboardingMode()
        prompt = mode.system_prompt()

        assert mode.name == "onboarding"
        assert not mode.extracts_changes
        assert "ONE question at a time" in prompt
        assert "<site_config>" in prompt
        assert "<changes>" in prompt
        assert mode.greeting() == ONBOARDING_GREETING

    def test_edit_prompt_embeds_current_config(self):
        config = {"businessName": "ABC Roofing", "phone": "555-1111"}
        mode = EditMode(current_config=config)
        prompt = mode.system_prompt()

        assert mode.name == "edit"
        assert mode.extracts_changes
        assert json.dumps(config, indent=2) in prompt
        assert "COMPLETE updated config" in prompt
        # Literal braces in the template survive formatting
        assert '{"name": "John Smith", "rating": 5' in prompt

    def test_edit_greeting_uses_business_name(self):
        assert "ABC Roofing" in EditMode({"businessName": "ABC Roofing"}).greeting()
        assert "your site" in EditMode({"phone": "1"}).greeting()


class TestSiteConfig:

    def test_partial_config_keeps_only_provided_fields(self):
        config = SiteConfig.model_validate({"businessName": "ABC", "customField": "x"})
        assert config.to_document() == {"businessName": "ABC", "customField": "x"}

    def test_nested_items(self):
        config = SiteConfig.model_validate({
            "services": [{"name": "Repairs", "icon": "wrench"}],
            "testimonials": [{"name": "Jo", "text": "Great", "rating": 5}],
        })
        doc = config.to_document()

        assert doc["services"][0]["name"] == "Repairs"
        assert doc["testimonials"][0]["rating"] == 5

    def test_merge_is_shallow(self):
        current = {"businessName": "ABC", "services": [{"name": "A"}, {"name": "B"}], "phone": "1"}
        update = {"services": [{"name": "C"}], "phone": "2"}

        merged = merge_site_config(current, update)

        assert merged == {"businessName": "ABC", "services": [{"name": "C"}], "phone": "2"}
        assert current["phone"] == "1"

    def test_merge_into_empty(self):
        assert merge_site_config(None, {"a": 1}) == {"a": 1}

    def test_chat_request_requires_messages(self):
        request = ChatRequest.model_validate({"messages": [{"role": "user", "content": "hi"}]})
        assert request.mode is None
        assert request.currentConfig is None

    def test_chat_request_keeps_config_as_sent(self):
        config = {"businessName": "ABC", "yearEstablished": 2005, "testimonials": [{"name": "Jo", "rating": 5}]}
        request = ChatRequest.model_validate({
            "messages": [{"role": "user", "content": "hi"}],
            "mode": "edit",
            "currentConfig": config,
        })
        assert request.currentConfig == config

    def test_schema_issues_are_reported_not_raised(self):
        issues = site_config_issues({"yearEstablished": 2005, "testimonials": [{"name": "Jo"}]})

        assert any(issue.startswith("yearEstablished") for issue in issues)
        assert any(issue.startswith("testimonials.0.text") for issue in issues)
        assert site_config_issues({"businessName": "ABC", "extra": [1]}) == []
