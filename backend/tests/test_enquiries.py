"""Tests for contact-form enquiries and their notification emails."""

from unittest.mock import Mock

import pytest

from pwb.core.tenant import for_website
from pwb.models import Contact, Message
from pwb.services.enquiries import EnquiryService, delivery_address, find_prop
from pwb.services.mailer import EnquiryMailer, deliver_enquiry


class TestDeliveryAddress:
    """Test which inbox receives an enquiry."""

    def test_property_enquiry_prefers_property_address(self, website, agency, prop):
        assert delivery_address(website, prop) == "listings@tenant-a.test"

    def test_general_enquiry(self, website, agency):
        assert delivery_address(website) == "general@tenant-a.test"

    def test_falls_back_to_primary_email(self, db, website, agency):
        agency.email_for_general_contact_form = None
        assert delivery_address(website) == "office@tenant-a.test"

    def test_website_address_without_agency(self, website):
        website.email_for_general_contact_form = "site@tenant-a.test"
        assert delivery_address(website) == "site@tenant-a.test"

    def test_no_address(self, website):
        assert delivery_address(website) is None


class TestEnquiryService:
    """Test recording enquiries."""

    def test_general_enquiry(self, db, website, agency):
        contact, message = EnquiryService(db, website).create_enquiry(
            "Jane Buyer", "jane@example.com", "+44 20 0000 0000", "Do you have anything near the beach?",
            origin_ip="203.0.113.9", host="tenant-a.propertywebbuilder.com",
        )

        assert contact.first_name == "Jane Buyer"
        assert contact.website_id == website.id
        assert message.title == "General enquiry from your website"
        assert message.delivery_email == "general@tenant-a.test"
        assert message.prop_id is None
        assert message.origin_ip == "203.0.113.9"
        assert message.read is False

    def test_property_enquiry_by_id(self, db, website, agency, prop):
        _, message = EnquiryService(db, website).create_enquiry(
            "Jane", "jane@example.com", None, "Is it still available?", property_ref=str(prop.id),
        )

        assert message.prop_id == prop.id
        assert message.title == "Enquiry about Sea view apartment"
        assert message.delivery_email == "listings@tenant-a.test"

    def test_localized_title(self, db, website, prop):
        _, message = EnquiryService(db, website).create_enquiry(
            "Ana", "ana@example.com", None, "Hola", property_ref=prop.id, locale="es",
        )
        assert message.title == "Consulta sobre Sea view apartment"

    def test_reuses_contact_by_email(self, db, website):
        service = EnquiryService(db, website)
        first, _ = service.create_enquiry("Jane", "jane@example.com", None, "One")
        second, _ = service.create_enquiry("Jane B", "JANE@example.com", "+1 555", "Two")

        assert first.id == second.id
        assert second.primary_phone_number == "+1 555"
        assert for_website(db, Contact, website.id).count() == 1
        assert for_website(db, Message, website.id).count() == 2

    def test_contacts_are_per_website(self, db, website, other_website):
        EnquiryService(db, website).create_enquiry("Jane", "jane@example.com", None, "Hi")
        EnquiryService(db, other_website).create_enquiry("Jane", "jane@example.com", None, "Hi")

        assert for_website(db, Contact, website.id).count() == 1
        assert for_website(db, Contact, other_website.id).count() == 1

    def test_invalid_email(self, db, website):
        with pytest.raises(ValueError, match="Email address is invalid"):
            EnquiryService(db, website).create_enquiry("Jane", "not-an-email", None, "Hi")

    def test_other_websites_property_is_ignored(self, db, website, other_website, make_prop):
        foreign = make_prop(other_website)
        _, message = EnquiryService(db, website).create_enquiry(
            "Jane", "jane@example.com", None, "Hi", property_ref=foreign.id,
        )
        assert message.prop_id is None

    def test_inbox_and_mark_read(self, db, website):
        service = EnquiryService(db, website)
        _, first = service.create_enquiry("A", "a@example.com", None, "One")
        service.create_enquiry("B", "b@example.com", None, "Two")

        service.mark_read(first)

        assert len(service.inbox()) == 2
        assert [m.content for m in service.inbox(unread_only=True)] == ["Two"]


def test_find_prop_by_slug(db, website, make_prop):
    prop = make_prop(website, slug="sea-view-apartment")
    assert find_prop(db, website, "sea-view-apartment").id == prop.id
    assert find_prop(db, website, "") is None


class TestEnquiryMailer:
    """Test building and sending notification emails."""

    def test_property_email(self, db, website, agency, prop):
        _, message = EnquiryService(db, website).create_enquiry(
            "Jane Buyer", "jane@example.com", "+44 1", "Can I visit on Monday?", property_ref=prop.id,
        )
        transport = Mock()

        assert EnquiryMailer(transport=transport).deliver(message, website) is True

        email = transport.call_args[0][0]
        assert email["To"] == "listings@tenant-a.test"
        assert email["Reply-To"] == "jane@example.com"
        assert email["Subject"] == "Enquiry about Sea view apartment"
        body = email.get_content()
        assert "Can I visit on Monday?" in body
        assert f"https://tenant-a.propertywebbuilder.com/properties/{prop.id}/sea-view-apartment" in body
        assert message.delivery_success is True
        assert message.delivered_at is not None

    def test_transport_failure_is_recorded(self, db, website, agency):
        _, message = EnquiryService(db, website).create_enquiry("Jane", "jane@example.com", None, "Hello")
        transport = Mock(side_effect=ConnectionRefusedError("smtp down"))

        assert EnquiryMailer(transport=transport).deliver(message, website) is False
        assert message.delivery_success is False
        assert message.delivery_error == "ConnectionRefusedError: smtp down"

    def test_no_delivery_address(self, db, website):
        _, message = EnquiryService(db, website).create_enquiry("Jane", "jane@example.com", None, "Hello")
        transport = Mock()

        assert EnquiryMailer(transport=transport).deliver(message, website) is False
        transport.assert_not_called()

    def test_background_delivery_persists_outcome(self, db, website, agency):
        _, message = EnquiryService(db, website).create_enquiry("Jane", "jane@example.com", None, "Hello")
        transport = Mock()

        assert deliver_enquiry(message.id, website.id, "default", mailer=EnquiryMailer(transport=transport)) is True

        db.expire_all()
        assert db.get(Message, message.id).delivery_success is True

    def test_background_delivery_missing_message(self, db, website):
        assert deliver_enquiry(999, website.id, "default", mailer=EnquiryMailer(transport=Mock())) is False
