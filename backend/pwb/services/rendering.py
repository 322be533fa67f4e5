"""
Themes and rendering mode (server-rendered themes vs the external client renderer).
"""

import logging
import re
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.tenant import for_website
from pwb.models.client_theme import ClientTheme
from pwb.models.content import Link
from pwb.models.prop import Prop
from pwb.models.website import RENDERING_MODES, Website
from pwb.services.provisioning import DEFAULT_LINKS

logger = logging.getLogger(__name__)

# Server-rendered themes
THEMES: Dict[str, str] = {
    "default": "Default",
    "berlin": "Berlin",
    "bologna": "Bologna",
    "barcelona": "Barcelona",
    "biarritz": "Biarritz",
    "brisbane": "Brisbane",
    "bristol": "Bristol",
    "brussels": "Brussels",
}

CLIENT_THEME_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

RENDERING_MODE_LOCKED_MESSAGE = "cannot be changed after website has content"


def theme_options() -> List[dict]:
    return [{"name": name, "friendly_name": label} for name, label in THEMES.items()]


def validate_client_theme(theme: ClientTheme) -> Dict[str, List[str]]:
    errors = {}
    if not theme.name or not CLIENT_THEME_NAME_PATTERN.match(theme.name):
        errors["name"] = ["must be lowercase letters, numbers, and underscores"]
    if not theme.friendly_name:
        errors["friendly_name"] = ["can't be blank"]
    return errors


def find_client_theme(db: Session, name: Optional[str], enabled_only: bool = True) -> Optional[ClientTheme]:
    if not name:
        return None
    query = db.query(ClientTheme).filter(ClientTheme.name == name)
    if enabled_only:
        query = query.filter(ClientTheme.enabled.is_(True))
    return query.first()


def client_theme_config_for(theme: ClientTheme, overrides: Optional[dict] = None) -> dict:
    config = dict(theme.default_config or {})
    config.update(overrides or {})
    return config


def css_variables(config: Optional[dict]) -> str:
    """Render a config dict as a ``:root`` CSS custom property block."""
    if not config:
        return ""
    lines = [f"  --{str(key).replace('_', '-')}: {value};" for key, value in config.items()]
    return ":root {\n" + "\n".join(lines) + "\n}"


def client_theme_json(theme: ClientTheme) -> dict:
    return {
        "name": theme.name,
        "friendly_name": theme.friendly_name,
        "version": theme.version,
        "description": theme.description,
        "preview_image_url": theme.preview_image_url,
        "default_config": theme.default_config or {},
        "enabled": theme.enabled,
    }


class WebsiteRendering:
    """Rendering decisions for one website."""

    def __init__(self, db: Session, website: Website):
        self.db = db
        self.website = website

    @property
    def client_theme(self) -> Optional[ClientTheme]:
        if not self.website.client_rendering:
            return None
        return find_client_theme(self.db, self.website.client_theme_name, enabled_only=False)

    def effective_client_theme_config(self) -> dict:
        theme = self.client_theme
        if theme is None:
            return {}
        return client_theme_config_for(theme, self.website.client_theme_config)

    def client_theme_css_variables(self) -> str:
        if not self.website.client_rendering:
            return ""
        return css_variables(self.effective_client_theme_config())

    def has_content(self) -> bool:
        """Any listing, or a navigation link beyond the provisioned defaults."""
        if for_website(self.db, Prop, self.website.id).first() is not None:
            return True
        default_slugs = [slug for slug, _, _, _ in DEFAULT_LINKS]
        return for_website(self.db, Link, self.website.id).filter(Link.slug.notin_(default_slugs)).first() is not None

    def rendering_mode_locked(self) -> bool:
        return self.website.provisioning_completed_at is not None and self.has_content()

    def rendering_mode_changeable(self) -> bool:
        return not self.rendering_mode_locked()

    def validate(self, previous_mode: Optional[str] = None) -> Dict[str, List[str]]:
        """Validate rendering settings; ``previous_mode`` is the persisted mode."""
        errors: Dict[str, List[str]] = {}
        mode = self.website.rendering_mode or "rails"

        if mode not in RENDERING_MODES:
            errors.setdefault("rendering_mode", []).append("is not included in the list")

        if previous_mode and previous_mode != mode and self.rendering_mode_locked():
            errors.setdefault("rendering_mode", []).append(RENDERING_MODE_LOCKED_MESSAGE)

        if mode == "client":
            if not self.website.client_theme_name:
                errors.setdefault("client_theme_name", []).append("can't be blank")
            elif find_client_theme(self.db, self.website.client_theme_name) is None:
                errors.setdefault("client_theme_name", []).append("must be a valid, enabled client theme")
        elif self.website.theme_name and self.website.theme_name not in THEMES:
            errors.setdefault("theme_name", []).append("is not a known theme")

        return errors

    def astro_client_url(self) -> str:
        """Per-website renderer URL, falling back to the platform default."""
        config = self.website.client_theme_config or {}
        url = config.get("astro_client_url")
        if url:
            return str(url).rstrip("/")
        return settings.ASTRO_CLIENT_URL.rstrip("/")
