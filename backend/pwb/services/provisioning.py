"""
Website provisioning lifecycle and the signup flow built on it.

pending -> owner_assigned -> agency_created -> links_created ->
field_keys_created -> properties_seeded -> ready ->
locked_pending_email_verification -> locked_pending_registration -> live

Side states: failed, suspended, terminated.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.exceptions import GuardFailedError, InvalidTransitionError
from pwb.core.tenant import for_website
from pwb.core.tokens import urlsafe_token
from pwb.models.content import FieldKey, Link
from pwb.models.prop import Feature, Prop
from pwb.models.subdomain import Subdomain
from pwb.models.user import User, UserMembership
from pwb.models.website import SITE_TYPES, Agency, Website
from pwb.services import subdomain_pool
from pwb.services.domains import find_by_verification_token

logger = logging.getLogger(__name__)

IN_PROGRESS_STATES = (
    "pending", "owner_assigned", "agency_created", "links_created",
    "field_keys_created", "properties_seeded",
)
LOCKED_STATES = ("locked_pending_email_verification", "locked_pending_registration")

PROVISIONING_STATES = IN_PROGRESS_STATES + ("ready",) + LOCKED_STATES + (
    "live", "failed", "suspended", "terminated",
)

MIN_LINKS = 3
MIN_FIELD_KEYS = 5

PROGRESS = {
    "pending": 0,
    "owner_assigned": 15,
    "agency_created": 30,
    "links_created": 45,
    "field_keys_created": 60,
    "properties_seeded": 80,
    "ready": 90,
    "locked_pending_email_verification": 95,
    "locked_pending_registration": 98,
    "live": 100,
}

STATUS_MESSAGES = {
    "pending": "Waiting to start...",
    "owner_assigned": "Owner account created",
    "agency_created": "Agency information saved",
    "links_created": "Navigation links created",
    "field_keys_created": "Property fields configured",
    "properties_seeded": "Sample properties added",
    "ready": "Almost done! Finalizing...",
    "locked_pending_email_verification": "Please check your email to verify your account",
    "locked_pending_registration": "Email verified! Please create your account to continue",
    "live": "Your website is live!",
    "suspended": "Website suspended",
    "terminated": "Website terminated",
}

# event -> (allowed source states, target state, guard name, log step)
TRANSITIONS: Dict[str, Tuple[Tuple[str, ...], str, Optional[str], str]] = {
    "assign_owner": (("pending",), "owner_assigned", "has_owner", "owner_assigned"),
    "complete_agency": (("owner_assigned",), "agency_created", "has_agency", "agency_created"),
    "complete_links": (("agency_created",), "links_created", "has_links", "links_created"),
    "complete_field_keys": (("links_created",), "field_keys_created", "has_field_keys", "field_keys_created"),
    "seed_properties": (("field_keys_created",), "properties_seeded", None, "properties_seeded"),
    "skip_properties": (("field_keys_created",), "properties_seeded", None, "properties_skipped"),
    "mark_ready": (("properties_seeded",), "ready", "provisioning_complete", "ready"),
    "enter_locked_state": (("ready",), "locked_pending_email_verification", "can_go_live",
                           "locked_pending_email_verification"),
    "verify_owner_email": (("locked_pending_email_verification",), "locked_pending_registration",
                           "email_verification_valid", "locked_pending_registration"),
    "complete_owner_registration": (("locked_pending_registration",), "live", None, "live"),
    "go_live": (("ready",) + LOCKED_STATES, "live", "can_go_live", "live"),
    "fail_provisioning": (IN_PROGRESS_STATES, "failed", None, "failed"),
    "retry_provisioning": (("failed",), "pending", None, "retry"),
    "suspend": (("ready", "live") + LOCKED_STATES, "suspended", None, "suspended"),
    "reactivate": (("suspended",), "live", None, "reactivated"),
    "terminate": (("suspended", "failed"), "terminated", None, "terminated"),
}

DEFAULT_LINKS = [
    ("home", "/", "Home", "top_nav"),
    ("buy", "/buy", "Buy", "top_nav"),
    ("rent", "/rent", "Rent", "top_nav"),
    ("about-us", "/about-us", "About us", "top_nav"),
    ("contact-us", "/contact-us", "Contact", "top_nav"),
    ("privacy", "/privacy", "Privacy", "footer"),
]

DEFAULT_FIELD_KEYS = [
    ("types.apartment", "property-types", "Apartment"),
    ("types.house", "property-types", "House"),
    ("types.villa", "property-types", "Villa"),
    ("types.commercial", "property-types", "Commercial"),
    ("types.land", "property-types", "Land"),
    ("states.new_build", "property-states", "New build"),
    ("states.resale", "property-states", "Resale"),
    ("features.pool", "property-features", "Pool"),
    ("features.garden", "property-features", "Garden"),
    ("features.terrace", "property-features", "Terrace"),
    ("features.air_conditioning", "property-features", "Air conditioning"),
]

SAMPLE_PROPERTIES = [
    {
        "reference": "SAMPLE-1", "title": "Bright apartment in the city centre",
        "prop_type_key": "types.apartment", "count_bedrooms": 2, "count_bathrooms": 1,
        "constructed_area": 85, "for_sale": True, "price_sale_current_cents": 250_000_00,
        "city": "Madrid", "features": ["features.terrace", "features.air_conditioning"],
    },
    {
        "reference": "SAMPLE-2", "title": "Family house with garden",
        "prop_type_key": "types.house", "count_bedrooms": 4, "count_bathrooms": 2,
        "constructed_area": 180, "for_sale": True, "price_sale_current_cents": 480_000_00,
        "city": "Valencia", "features": ["features.garden", "features.pool"],
    },
    {
        "reference": "SAMPLE-3", "title": "Studio for long term rental",
        "prop_type_key": "types.apartment", "count_bedrooms": 1, "count_bathrooms": 1,
        "constructed_area": 40, "for_rent_long_term": True,
        "price_rental_monthly_current_cents": 900_00, "city": "Seville", "features": [],
    },
]


class WebsiteLifecycle:
    """State machine over ``Website.provisioning_state``."""

    def __init__(self, db: Session, website: Website):
        self.db = db
        self.website = website

    @property
    def state(self) -> str:
        return self.website.provisioning_state or "pending"

    # Guards

    def has_owner(self) -> bool:
        return self.db.query(UserMembership.id).filter(
            UserMembership.website_id == self.website.id,
            UserMembership.role == "owner",
            UserMembership.active.is_(True),
        ).first() is not None

    def has_agency(self) -> bool:
        return for_website(self.db, Agency, self.website.id).first() is not None

    def links_count(self) -> int:
        return for_website(self.db, Link, self.website.id).count()

    def field_keys_count(self) -> int:
        return for_website(self.db, FieldKey, self.website.id).count()

    def properties_count(self) -> int:
        return for_website(self.db, Prop, self.website.id).count()

    def has_links(self) -> bool:
        return self.links_count() >= MIN_LINKS

    def has_field_keys(self) -> bool:
        return self.field_keys_count() >= MIN_FIELD_KEYS

    def provisioning_complete(self) -> bool:
        return self.has_owner() and self.has_agency() and self.has_links() and self.has_field_keys()

    def can_go_live(self) -> bool:
        return self.provisioning_complete() and bool(self.website.subdomain)

    def email_verification_valid(self) -> bool:
        return bool(
            self.website.email_verification_token
            and self.website.email_verification_token_expires_at
            and self.website.email_verification_token_expires_at > datetime.utcnow()
        )

    # Events

    def may(self, event: str) -> bool:
        sources, _, guard, _ = TRANSITIONS[event]
        if self.state not in sources:
            return False
        return guard is None or getattr(self, guard)()

    def fire(self, event: str, error: Optional[str] = None) -> str:
        sources, target, guard, step = TRANSITIONS[event]
        if self.state not in sources:
            raise InvalidTransitionError(event, self.state)
        if guard is not None and not getattr(self, guard)():
            raise GuardFailedError(event, self.state, f"{guard} is false")

        self.website.provisioning_state = target
        self._after(event, error)
        self.log_step(step, error=error)
        return target

    def _after(self, event: str, error: Optional[str]):
        website = self.website
        now = datetime.utcnow()
        if event == "assign_owner" and website.provisioning_started_at is None:
            website.provisioning_started_at = now
        elif event == "mark_ready":
            website.provisioning_completed_at = now
        elif event == "enter_locked_state":
            website.email_verification_token = urlsafe_token(32)
            website.email_verification_token_expires_at = now + timedelta(
                days=settings.EMAIL_VERIFICATION_EXPIRY_DAYS
            )
        elif event == "verify_owner_email":
            website.email_verified_at = now
        elif event == "fail_provisioning":
            website.provisioning_error = error
            website.provisioning_failed_at = now
        elif event == "retry_provisioning":
            website.provisioning_error = None
            website.provisioning_failed_at = None

    def __getattr__(self, name: str) -> Callable[..., str]:
        if name in TRANSITIONS:
            return lambda error=None: self.fire(name, error=error)
        raise AttributeError(name)

    # Reporting

    @property
    def progress(self) -> int:
        if self.state == "failed":
            return self._failed_step_progress()
        return PROGRESS.get(self.state, 0)

    def _failed_step_progress(self) -> int:
        if self.has_field_keys():
            return 60
        if self.has_links():
            return 45
        if self.has_agency():
            return 30
        if self.has_owner():
            return 15
        return 0

    @property
    def status_message(self) -> str:
        if self.state == "failed":
            return f"Setup failed: {self.website.provisioning_error}"
        return STATUS_MESSAGES.get(self.state, "Unknown status")

    @property
    def accessible(self) -> bool:
        return self.state in ("live", "ready")

    @property
    def provisioning(self) -> bool:
        return self.state in IN_PROGRESS_STATES

    @property
    def locked(self) -> bool:
        return self.state in LOCKED_STATES

    @property
    def locked_mode(self) -> Optional[str]:
        if self.state == "locked_pending_email_verification":
            return "pending_email_verification"
        if self.state == "locked_pending_registration":
            return "pending_registration"
        return None

    def checklist(self) -> Dict[str, Dict[str, Any]]:
        links = self.links_count()
        field_keys = self.field_keys_count()
        properties = self.properties_count()
        return {
            "owner": {"complete": self.has_owner(), "required": True},
            "agency": {"complete": self.has_agency(), "required": True},
            "links": {"complete": links >= MIN_LINKS, "count": links, "minimum": MIN_LINKS, "required": True},
            "field_keys": {
                "complete": field_keys >= MIN_FIELD_KEYS, "count": field_keys,
                "minimum": MIN_FIELD_KEYS, "required": True,
            },
            "properties": {"complete": properties > 0, "count": properties, "required": False},
            "subdomain": {"complete": bool(self.website.subdomain), "value": self.website.subdomain, "required": True},
        }

    def missing_items(self) -> List[str]:
        checklist = self.checklist()
        missing = []
        if not checklist["owner"]["complete"]:
            missing.append("owner membership")
        if not checklist["agency"]["complete"]:
            missing.append("agency")
        if not checklist["links"]["complete"]:
            missing.append(f"links (have {checklist['links']['count']}, need {MIN_LINKS})")
        if not checklist["field_keys"]["complete"]:
            missing.append(f"field_keys (have {checklist['field_keys']['count']}, need {MIN_FIELD_KEYS})")
        if not checklist["subdomain"]["complete"]:
            missing.append("subdomain")
        return missing

    def summary(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "progress": self.progress,
            "message": self.status_message,
            "accessible": self.accessible,
            "locked_mode": self.locked_mode,
            "missing_items": self.missing_items(),
        }

    def log_step(self, step: str, error: Optional[str] = None):
        details = {"step": step, "state": self.state, "timestamp": datetime.utcnow().isoformat()}
        if error:
            details["error"] = error
        logger.info(f"[Provisioning] Website {self.website.id} ({self.website.subdomain}): {json.dumps(details)}")


class ProvisioningService:
    """Signup and provisioning orchestration. Methods return result dicts."""

    def __init__(self, db: Session):
        self.db = db
        self.errors: List[str] = []

    def _success(self, **data) -> Dict[str, Any]:
        return {"success": True, "errors": [], **data}

    def _failure(self) -> Dict[str, Any]:
        return {"success": False, "errors": list(self.errors)}

    # Signup

    def start_signup(self, email: str) -> Dict[str, Any]:
        """Register a lead and reserve a subdomain for them."""
        self.errors = []
        email = email.strip().lower()

        user = self.db.query(User).filter(User.email == email).first()
        if user is not None and user.memberships:
            self.errors.append("An account with this email already exists")
            return self._failure()

        if user is None:
            user = User(email=email, is_active=False)
            self.db.add(user)
            self.db.commit()

        subdomain = subdomain_pool.reserve_for_email(self.db, email)
        return self._success(user=user, subdomain=subdomain)

    def check_subdomain_availability(self, name: str, email: Optional[str] = None) -> Dict[str, Any]:
        return subdomain_pool.SubdomainGenerator(self.db).validate_custom_name(name, reserved_by_email=email)

    def suggest_subdomain(self) -> str:
        return subdomain_pool.SubdomainGenerator(self.db).generate()

    def configure_site(self, user: User, subdomain_name: str, site_type: str,
                       theme_name: Optional[str] = None) -> Dict[str, Any]:
        """Create the pending website and make the user its owner."""
        self.errors = []

        validation = self.check_subdomain_availability(subdomain_name, email=user.email)
        if not validation["valid"]:
            self.errors.extend(f"Subdomain {e}" for e in validation["errors"])
            return self._failure()

        if site_type not in SITE_TYPES:
            self.errors.append(f"Invalid site type. Choose from: {', '.join(SITE_TYPES)}")
            return self._failure()

        website = Website(
            subdomain=validation["normalized"],
            site_type=site_type,
            theme_name=theme_name or "default",
            owner_email=user.email,
            provisioning_state="pending",
        )
        self.db.add(website)
        self.db.flush()

        pooled = self.db.query(Subdomain).filter(Subdomain.name == validation["normalized"]).first()
        if pooled is not None and pooled.state in ("reserved", "available"):
            pooled.allocate(website)

        membership = UserMembership(user=user, website=website, role="owner", active=True)
        self.db.add(membership)
        self.db.commit()
        logger.info(f"Configured website {website.id} ({website.subdomain}) for {user.email}")
        return self._success(user=user, website=website, membership=membership)

    # Provisioning

    def provision_website(self, website: Website, seed_properties: bool = False,
                          on_progress: Optional[Callable[[Dict[str, Any]], None]] = None) -> Dict[str, Any]:
        """Run every provisioning step up to the locked, email-verification state."""
        self.errors = []
        lifecycle = WebsiteLifecycle(self.db, website)

        def step(event: str):
            lifecycle.fire(event)
            self.db.commit()
            if on_progress:
                on_progress({"state": lifecycle.state, "percentage": lifecycle.progress,
                             "message": lifecycle.status_message})

        try:
            step("assign_owner")

            self._ensure_agency(website)
            step("complete_agency")

            self._ensure_links(website)
            step("complete_links")

            self._ensure_field_keys(website)
            step("complete_field_keys")

            if seed_properties:
                self._seed_properties(website)
                step("seed_properties")
            else:
                step("skip_properties")

            step("mark_ready")
            step("enter_locked_state")
        except Exception as e:
            logger.error(f"Provisioning failed for website {website.id}: {e}", exc_info=True)
            self.db.rollback()
            self.db.refresh(website)
            if lifecycle.may("fail_provisioning"):
                lifecycle.fail_provisioning(error=str(e))
                self.db.commit()
            self.errors.append(f"Provisioning failed: {e}")
            return self._failure()

        return self._success(website=website)

    def retry_provisioning(self, website: Website, seed_properties: bool = False) -> Dict[str, Any]:
        self.errors = []
        lifecycle = WebsiteLifecycle(self.db, website)
        if lifecycle.state != "failed":
            self.errors.append("Website is not in failed state")
            return self._failure()
        lifecycle.retry_provisioning()
        self.db.commit()
        return self.provision_website(website, seed_properties=seed_properties)

    def verify_email(self, token: str) -> Dict[str, Any]:
        self.errors = []
        website = find_by_verification_token(self.db, token)
        if website is None:
            self.errors.append("Invalid verification token")
            return self._failure()

        lifecycle = WebsiteLifecycle(self.db, website)
        if not lifecycle.may("verify_owner_email"):
            self.errors.append("Verification link has expired or was already used")
            return self._failure()

        lifecycle.verify_owner_email()
        self.db.commit()
        return self._success(website=website)

    def complete_registration(self, website: Website) -> Dict[str, Any]:
        self.errors = []
        lifecycle = WebsiteLifecycle(self.db, website)
        if not lifecycle.may("complete_owner_registration"):
            self.errors.append("Unable to complete registration in current state")
            return self._failure()

        lifecycle.complete_owner_registration()
        owner = self._owner(website)
        if owner is not None:
            owner.is_active = True
        self.db.commit()
        return self._success(website=website)

    # Seeding helpers

    def _owner(self, website: Website) -> Optional[User]:
        membership = self.db.query(UserMembership).filter(
            UserMembership.website_id == website.id,
            UserMembership.role == "owner",
        ).first()
        return membership.user if membership else None

    def _ensure_agency(self, website: Website):
        if for_website(self.db, Agency, website.id).first() is not None:
            return
        name = website.company_display_name or website.subdomain
        self.db.add(Agency(
            website_id=website.id,
            display_name=name,
            company_name=name,
            email_primary=website.owner_email,
            email_for_general_contact_form=website.owner_email,
            email_for_property_contact_form=website.owner_email,
        ))
        self.db.flush()

    def _ensure_links(self, website: Website):
        existing = {link.slug for link in for_website(self.db, Link, website.id).all()}
        for sort_order, (slug, url, title, placement) in enumerate(DEFAULT_LINKS):
            if slug not in existing:
                self.db.add(Link(website_id=website.id, slug=slug, link_url=url, link_title=title,
                                 placement=placement, sort_order=sort_order))
        self.db.flush()

    def _ensure_field_keys(self, website: Website):
        existing = {fk.global_key for fk in for_website(self.db, FieldKey, website.id).all()}
        for sort_order, (key, tag, label) in enumerate(DEFAULT_FIELD_KEYS):
            if key not in existing:
                self.db.add(FieldKey(website_id=website.id, global_key=key, tag=tag, label=label,
                                     sort_order=sort_order))
        self.db.flush()

    def _seed_properties(self, website: Website):
        for sample in SAMPLE_PROPERTIES:
            attrs = dict(sample)
            features = attrs.pop("features")
            prop = Prop(website_id=website.id, visible=True,
                        price_sale_current_currency=website.default_currency,
                        price_rental_monthly_current_currency=website.default_currency, **attrs)
            prop.price_rental_monthly_for_search_cents = prop.price_rental_monthly_current_cents or 0
            prop.features = [Feature(feature_key=key) for key in features]
            self.db.add(prop)
        self.db.flush()
