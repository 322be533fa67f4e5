"""
Website addressing: subdomains, custom domains and host resolution.
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import dns.exception
import dns.resolver
from sqlalchemy import func
from sqlalchemy.orm import Session

from pwb.core.config import settings
from pwb.core.tokens import hex_token
from pwb.models.website import Website

logger = logging.getLogger(__name__)

RESERVED_SUBDOMAINS = frozenset({
    "www", "api", "admin", "app", "mail", "ftp", "smtp", "pop", "imap",
    "ns1", "ns2", "localhost", "staging", "test",
})

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$", re.IGNORECASE)
CUSTOM_DOMAIN_PATTERN = re.compile(r"^([a-z0-9]([a-z0-9-]*[a-z0-9])?\.)+[a-z]{2,}$", re.IGNORECASE)

VERIFICATION_RECORD_PREFIX = "_pwb-verification"


def platform_domains() -> List[str]:
    return settings.platform_domains


def normalize_domain(domain: Optional[str]) -> str:
    """Lowercase and strip scheme, path and port."""
    value = (domain or "").strip().lower()
    value = re.sub(r"^https?://", "", value)
    value = re.sub(r"/.*$", "", value)
    value = re.sub(r":\d+$", "", value)
    return value


def is_platform_domain(host: str) -> bool:
    host = normalize_domain(host)
    return any(host == pd or host.endswith(f".{pd}") for pd in platform_domains())


def extract_subdomain_from_host(host: str) -> Optional[str]:
    """First label in front of a platform domain, e.g. ``acme`` for ``acme.pwb.localhost``."""
    host = normalize_domain(host)
    for pd in platform_domains():
        if host == pd:
            return None
        if host.endswith(f".{pd}"):
            prefix = host[: -(len(pd) + 1)]
            if prefix:
                return prefix.split(".")[0]
    return None


def find_by_subdomain(db: Session, subdomain: Optional[str]) -> Optional[Website]:
    if not subdomain:
        return None
    return db.query(Website).filter(func.lower(Website.subdomain) == subdomain.strip().lower()).first()


def find_by_custom_domain(db: Session, domain: Optional[str]) -> Optional[Website]:
    """Exact match first, then the same domain with the ``www.`` prefix toggled."""
    normalized = normalize_domain(domain)
    if not normalized:
        return None

    website = db.query(Website).filter(func.lower(Website.custom_domain) == normalized).first()
    if website:
        return website

    if normalized.startswith("www."):
        alternate = normalized[4:]
    else:
        alternate = f"www.{normalized}"
    return db.query(Website).filter(func.lower(Website.custom_domain) == alternate).first()


def find_by_host(db: Session, host: Optional[str]) -> Optional[Website]:
    """Resolve a request host: custom domains first, then platform subdomains."""
    host = normalize_domain(host)
    if not host:
        return None

    if not is_platform_domain(host):
        website = find_by_custom_domain(db, host)
        if website:
            return website

    subdomain = extract_subdomain_from_host(host)
    if subdomain:
        return find_by_subdomain(db, subdomain)
    return None


def find_by_verification_token(db: Session, token: Optional[str]) -> Optional[Website]:
    if not token:
        return None
    return db.query(Website).filter(Website.email_verification_token == token).first()


def validate_subdomain(db: Session, subdomain: Optional[str], website_id: Optional[int] = None) -> List[str]:
    """Error messages for a website subdomain, empty when valid."""
    if not subdomain:
        return []
    errors = []
    if not SUBDOMAIN_PATTERN.match(subdomain):
        errors.append("can only contain alphanumeric characters and hyphens, and cannot start or end with a hyphen")
    if not 2 <= len(subdomain) <= 63:
        errors.append("must be between 2 and 63 characters")
    if subdomain.lower() in RESERVED_SUBDOMAINS:
        errors.append("is reserved and cannot be used")

    query = db.query(Website.id).filter(func.lower(Website.subdomain) == subdomain.lower())
    if website_id is not None:
        query = query.filter(Website.id != website_id)
    if query.first():
        errors.append("has already been taken")
    return errors


def validate_custom_domain(db: Session, domain: Optional[str], website_id: Optional[int] = None) -> List[str]:
    if not domain:
        return []
    normalized = normalize_domain(domain)
    errors = []
    if not CUSTOM_DOMAIN_PATTERN.match(normalized):
        errors.append("must be a valid domain name")
    if len(normalized) > 253:
        errors.append("is too long (maximum is 253 characters)")
    if is_platform_domain(normalized):
        errors.append("cannot be a platform domain")

    query = db.query(Website.id).filter(func.lower(Website.custom_domain) == normalized)
    if website_id is not None:
        query = query.filter(Website.id != website_id)
    if query.first():
        errors.append("has already been taken")
    return errors


def validate_addressing(db: Session, website: Website) -> Dict[str, List[str]]:
    errors = {}
    subdomain_errors = validate_subdomain(db, website.subdomain, website.id)
    if subdomain_errors:
        errors["subdomain"] = subdomain_errors
    domain_errors = validate_custom_domain(db, website.custom_domain, website.id)
    if domain_errors:
        errors["custom_domain"] = domain_errors
    return errors


def set_custom_domain(website: Website, domain: Optional[str]) -> None:
    """Assign a custom domain; a changed domain must be verified again."""
    normalized = normalize_domain(domain) or None
    if normalized == website.custom_domain:
        return
    website.custom_domain = normalized
    website.custom_domain_verified = False
    website.custom_domain_verified_at = None
    website.custom_domain_verification_token = hex_token(16) if normalized else None


def generate_domain_verification_token(website: Website) -> str:
    website.custom_domain_verification_token = hex_token(16)
    return website.custom_domain_verification_token


def verification_record_name(website: Website) -> Optional[str]:
    if not website.custom_domain:
        return None
    domain = normalize_domain(website.custom_domain)
    if domain.startswith("www."):
        domain = domain[4:]
    return f"{VERIFICATION_RECORD_PREFIX}.{domain}"


def verify_custom_domain(website: Website, resolver: Optional[dns.resolver.Resolver] = None) -> bool:
    """Check the TXT record proving ownership of the custom domain."""
    if not website.custom_domain or not website.custom_domain_verification_token:
        return False

    record_name = verification_record_name(website)
    resolver = resolver or dns.resolver.Resolver()
    try:
        answer = resolver.resolve(record_name, "TXT")
    except dns.exception.DNSException as e:
        logger.warning(f"Domain verification lookup failed for {record_name}: {e}")
        return False

    for record in answer:
        value = b"".join(record.strings).decode("utf-8", errors="ignore").strip('"')
        if value == website.custom_domain_verification_token:
            website.custom_domain_verified = True
            website.custom_domain_verified_at = datetime.utcnow()
            logger.info(f"Custom domain verified for website {website.id}: {website.custom_domain}")
            return True

    logger.info(f"No matching verification record at {record_name}")
    return False


def custom_domain_active(website: Website) -> bool:
    if not website.custom_domain:
        return False
    return bool(website.custom_domain_verified) or settings.ENVIRONMENT in ("development", "test")


def primary_url(website: Website) -> Optional[str]:
    if custom_domain_active(website):
        return f"https://{website.custom_domain}"
    domains = platform_domains()
    if website.subdomain and domains:
        return f"https://{website.subdomain}.{domains[0]}"
    return None


def dns_instructions(website: Website) -> Optional[dict]:
    """DNS records the owner must create for a custom domain."""
    if not website.custom_domain:
        return None
    domains = platform_domains()
    return {
        "txt_record": {
            "name": verification_record_name(website),
            "value": website.custom_domain_verification_token,
        },
        "cname_record": {
            "name": website.custom_domain,
            "value": f"{website.subdomain}.{domains[0]}" if website.subdomain and domains else None,
        },
        "verified": bool(website.custom_domain_verified),
    }


# TLS certificate gate

TLS_OK = 200
TLS_FORBIDDEN = 403
TLS_NOT_FOUND = 404


def website_tls_status(website: Website) -> Tuple[int, str]:
    state = website.provisioning_state
    if state in ("live", "ready"):
        return TLS_OK, "Website active"
    if state == "suspended":
        return TLS_FORBIDDEN, "Website suspended"
    if state == "terminated":
        return TLS_FORBIDDEN, "Website terminated"
    if state == "failed":
        return TLS_FORBIDDEN, "Website provisioning failed"
    return TLS_OK, "Website provisioning in progress"


def check_tls_domain(db: Session, domain: str) -> Tuple[int, str]:
    """Decide whether a certificate may be issued for ``domain``.

    Returns an HTTP status and a reason.
    """
    domain = domain.strip().lower()

    if is_platform_domain(domain):
        subdomain = extract_subdomain_from_host(domain)
        if not subdomain:
            return TLS_OK, "Platform domain"
        if subdomain.lower() in RESERVED_SUBDOMAINS:
            return TLS_OK, "Reserved subdomain"
        website = find_by_subdomain(db, subdomain)
        if website is None:
            return TLS_NOT_FOUND, "Subdomain not registered"
        return website_tls_status(website)

    website = find_by_custom_domain(db, domain)
    if website is None:
        return TLS_NOT_FOUND, "Custom domain not registered"
    if not custom_domain_active(website):
        return TLS_FORBIDDEN, "Custom domain not verified"
    return website_tls_status(website)
