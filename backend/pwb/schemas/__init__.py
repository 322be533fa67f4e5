"""Pydantic schemas for request/response validation."""

from pwb.schemas.prop import (
    PropCreate,
    PropUpdate,
    PropResponse,
    SearchResponse,
)
from pwb.schemas.website import (
    PublicSiteResponse,
    WebsiteUpdate,
    WebsiteAdminResponse,
    DomainStatusResponse,
    SignupStart,
    SubdomainCheck,
    SignupConfigure,
    SignupProvision,
    ProvisioningStatus,
)
from pwb.schemas.enquiry import EnquiryCreate, MessageResponse, MessageUpdate
from pwb.schemas.report import (
    MarketReportCreate,
    MarketReportSummary,
    MarketReportResponse,
    ListingVideoCreate,
    ListingVideoComplete,
    ListingVideoFail,
    ListingVideoResponse,
    GuessCreate,
)

__all__ = [
    "PropCreate",
    "PropUpdate",
    "PropResponse",
    "SearchResponse",
    "PublicSiteResponse",
    "WebsiteUpdate",
    "WebsiteAdminResponse",
    "DomainStatusResponse",
    "SignupStart",
    "SubdomainCheck",
    "SignupConfigure",
    "SignupProvision",
    "ProvisioningStatus",
    "EnquiryCreate",
    "MessageResponse",
    "MessageUpdate",
    "MarketReportCreate",
    "MarketReportSummary",
    "MarketReportResponse",
    "ListingVideoCreate",
    "ListingVideoComplete",
    "ListingVideoFail",
    "ListingVideoResponse",
    "GuessCreate",
]
