"""Website settings and signup schemas."""

from pydantic import BaseModel, EmailStr
from typing import Optional, List, Dict, Any
from datetime import datetime


class AgencyContact(BaseModel):
    display_name: Optional[str] = None
    email_primary: Optional[str] = None
    phone_number_primary: Optional[str] = None
    phone_number_mobile: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    class Config:
        from_attributes = True


class PublicSiteResponse(BaseModel):
    """Public configuration of the current website."""
    id: int
    subdomain: Optional[str] = None
    company_display_name: str
    theme_name: str
    main_logo_url: Optional[str] = None
    default_client_locale: str
    supported_locales: List[str]
    default_currency: str
    available_currencies: List[str]
    exchange_rates: Dict[str, float]
    default_area_unit: str
    rendering_mode: str
    client_theme_name: Optional[str] = None
    client_theme_config: Dict[str, Any] = {}
    client_theme_css: str = ""
    primary_url: Optional[str] = None
    price_options: Dict[str, List[int]]
    agency: Optional[AgencyContact] = None


class WebsiteUpdate(BaseModel):
    """Site-admin editable settings. Only provided fields change."""
    company_display_name: Optional[str] = None
    theme_name: Optional[str] = None
    main_logo_url: Optional[str] = None
    default_client_locale: Optional[str] = None
    supported_locales: Optional[List[str]] = None
    default_currency: Optional[str] = None
    available_currencies: Optional[List[str]] = None
    default_area_unit: Optional[str] = None
    email_for_general_contact_form: Optional[str] = None
    rendering_mode: Optional[str] = None
    client_theme_name: Optional[str] = None
    client_theme_config: Optional[Dict[str, Any]] = None
    custom_domain: Optional[str] = None


class WebsiteAdminResponse(BaseModel):
    id: int
    subdomain: Optional[str] = None
    custom_domain: Optional[str] = None
    custom_domain_verified: bool
    company_display_name: Optional[str] = None
    site_type: Optional[str] = None
    theme_name: str
    main_logo_url: Optional[str] = None
    default_client_locale: str
    supported_locales: List[str] = []
    default_currency: str
    available_currencies: List[str] = []
    exchange_rates: Dict[str, float] = {}
    exchange_rates_updated_at: Optional[datetime] = None
    default_area_unit: str
    email_for_general_contact_form: Optional[str] = None
    rendering_mode: str
    client_theme_name: Optional[str] = None
    client_theme_config: Dict[str, Any] = {}
    provisioning_state: str
    shard_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DomainStatusResponse(BaseModel):
    custom_domain: Optional[str] = None
    verified: bool
    verified_at: Optional[datetime] = None
    active: bool
    primary_url: Optional[str] = None
    dns_instructions: Optional[Dict[str, Any]] = None


# Signup

class SignupStart(BaseModel):
    email: EmailStr


class SubdomainCheck(BaseModel):
    name: str
    email: Optional[EmailStr] = None


class SignupConfigure(BaseModel):
    subdomain: str
    site_type: str = "residential"
    theme_name: Optional[str] = None


class SignupProvision(BaseModel):
    website_id: int
    seed_properties: bool = False


class ProvisioningStatus(BaseModel):
    website_id: int
    subdomain: Optional[str] = None
    state: str
    progress: int
    message: str
    accessible: bool
    locked_mode: Optional[str] = None
    primary_url: Optional[str] = None
    checklist: Dict[str, Dict[str, Any]] = {}
    missing_items: List[str] = []
