"""Tests for themes and the rendering mode."""

from pwb.core.config import settings
from pwb.models import ClientTheme, Link
from pwb.services.rendering import (
    RENDERING_MODE_LOCKED_MESSAGE,
    WebsiteRendering,
    css_variables,
    validate_client_theme,
)


def add_theme(db, name="amsterdam", enabled=True):
    theme = ClientTheme(
        name=name,
        friendly_name=name.title(),
        enabled=enabled,
        default_config={"primary_color": "#FF6B35", "font_heading": "Inter"},
    )
    db.add(theme)
    db.commit()
    return theme


class TestClientTheme:
    def test_css_variables(self):
        css = css_variables({"primary_color": "#111", "font_heading": "Inter"})
        assert css == ":root {\n  --primary-color: #111;\n  --font-heading: Inter;\n}"

    def test_empty_config_has_no_css(self):
        assert css_variables({}) == ""

    def test_theme_name_format(self):
        errors = validate_client_theme(ClientTheme(name="Bad-Name", friendly_name=""))
        assert set(errors) == {"name", "friendly_name"}

    def test_website_overrides_theme_defaults(self, db, website):
        add_theme(db)
        website.rendering_mode = "client"
        website.client_theme_name = "amsterdam"
        website.client_theme_config = {"primary_color": "#000000"}

        rendering = WebsiteRendering(db, website)

        assert rendering.effective_client_theme_config() == {"primary_color": "#000000", "font_heading": "Inter"}
        assert "--primary-color: #000000;" in rendering.client_theme_css_variables()

    def test_server_rendered_site_has_no_client_css(self, db, website):
        add_theme(db)
        website.client_theme_name = "amsterdam"
        assert WebsiteRendering(db, website).client_theme_css_variables() == ""


class TestRenderingModeLock:
    """Test when the rendering mode may change."""

    def test_changeable_without_content(self, db, website):
        assert WebsiteRendering(db, website).rendering_mode_changeable() is True

    def test_default_links_are_not_content(self, db, website):
        db.add(Link(website_id=website.id, slug="home", link_url="/"))
        db.commit()
        assert WebsiteRendering(db, website).has_content() is False

    def test_custom_link_is_content(self, db, website):
        db.add(Link(website_id=website.id, slug="our-team", link_url="/our-team"))
        db.commit()
        assert WebsiteRendering(db, website).rendering_mode_locked() is True

    def test_listing_locks_mode(self, db, website, prop):
        assert WebsiteRendering(db, website).rendering_mode_locked() is True

    def test_not_locked_before_provisioning_completes(self, db, website, prop):
        website.provisioning_completed_at = None
        assert WebsiteRendering(db, website).rendering_mode_locked() is False

    def test_other_websites_content_does_not_count(self, db, website, other_website):
        db.add(Link(website_id=other_website.id, slug="our-team"))
        db.commit()
        assert WebsiteRendering(db, website).has_content() is False

    def test_switching_locked_mode_is_rejected(self, db, website, prop):
        add_theme(db)
        website.rendering_mode = "client"
        website.client_theme_name = "amsterdam"

        errors = WebsiteRendering(db, website).validate(previous_mode="rails")
        assert errors == {"rendering_mode": [RENDERING_MODE_LOCKED_MESSAGE]}


class TestValidation:
    def test_client_mode_needs_theme(self, db, website):
        website.rendering_mode = "client"
        assert WebsiteRendering(db, website).validate() == {"client_theme_name": ["can't be blank"]}

    def test_disabled_client_theme(self, db, website):
        add_theme(db, enabled=False)
        website.rendering_mode = "client"
        website.client_theme_name = "amsterdam"

        errors = WebsiteRendering(db, website).validate()
        assert errors == {"client_theme_name": ["must be a valid, enabled client theme"]}

    def test_unknown_mode(self, db, website):
        website.rendering_mode = "flash"
        assert "rendering_mode" in WebsiteRendering(db, website).validate()

    def test_unknown_server_theme(self, db, website):
        website.theme_name = "paris"
        assert WebsiteRendering(db, website).validate() == {"theme_name": ["is not a known theme"]}

    def test_astro_client_url(self, db, website, monkeypatch):
        monkeypatch.setattr(settings, "ASTRO_CLIENT_URL", "http://astro:4321/")
        assert WebsiteRendering(db, website).astro_client_url() == "http://astro:4321"

        website.client_theme_config = {"astro_client_url": "https://render.example.com/"}
        assert WebsiteRendering(db, website).astro_client_url() == "https://render.example.com"
