"""Database models."""

from pwb.models.website import Website, Agency
from pwb.models.user import User, UserMembership, UserSession
from pwb.models.subdomain import Subdomain
from pwb.models.prop import Prop, Feature
from pwb.models.contact import Contact, Message
from pwb.models.content import Link, FieldKey
from pwb.models.client_theme import ClientTheme
from pwb.models.market_report import MarketReport
from pwb.models.listing_video import ListingVideo
from pwb.models.price_guess import PriceGuess
from pwb.models.shard_audit_log import ShardAuditLog

__all__ = [
    "Website",
    "Agency",
    "User",
    "UserMembership",
    "UserSession",
    "Subdomain",
    "Prop",
    "Feature",
    "Contact",
    "Message",
    "Link",
    "FieldKey",
    "ClientTheme",
    "MarketReport",
    "ListingVideo",
    "PriceGuess",
    "ShardAuditLog",
]
