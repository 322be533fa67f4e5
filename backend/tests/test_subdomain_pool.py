"""Tests for the subdomain pool."""

import random
from datetime import datetime, timedelta

import pytest

from pwb.core.exceptions import (
    DomainValidationError,
    InvalidTransitionError,
    SubdomainPoolEmptyError,
    SubdomainPoolExhaustedError,
)
from pwb.models import Subdomain
from pwb.services import subdomain_pool
from pwb.services.subdomain_pool import SubdomainGenerator


def add_subdomain(db, name, state="available", **attrs):
    subdomain = Subdomain(name=name, aasm_state=state, **attrs)
    db.add(subdomain)
    db.commit()
    return subdomain


class TestSubdomainGenerator:
    """Test name generation."""

    def test_name_format(self, db):
        name = SubdomainGenerator(db, rng=random.Random(7)).generate()
        adjective, noun, number = name.split("-")
        assert adjective in subdomain_pool.ADJECTIVES
        assert noun in subdomain_pool.NOUNS
        assert 10 <= int(number) <= 99

    def test_batch_names_are_unique(self, db):
        names = SubdomainGenerator(db, rng=random.Random(1)).generate_batch(50)
        assert len(set(names)) == 50

    def test_pooled_and_website_names_are_taken(self, db, website):
        generator = SubdomainGenerator(db, rng=random.Random(3))
        taken = generator.build_name()
        add_subdomain(db, taken)

        assert generator._taken(taken) is True
        assert generator._taken("tenant-a") is True
        assert generator._taken("brand-new-name") is False

    def test_populate_pool(self, db):
        created = SubdomainGenerator(db, rng=random.Random(2)).populate_pool(count=25, batch_size=10)

        assert created == 25
        assert subdomain_pool.pool_stats(db)["available"] == 25

    def test_ensure_pool_minimum(self, db):
        generator = SubdomainGenerator(db, rng=random.Random(4))
        generator.populate_pool(count=5)

        assert generator.ensure_pool_minimum(8) == 3
        assert generator.ensure_pool_minimum(8) == 0


class TestCustomNameValidation:
    """Test user-chosen subdomain names."""

    def test_valid_name(self, db):
        result = SubdomainGenerator(db).validate_custom_name("  My-Agency ")
        assert result == {"valid": True, "errors": [], "normalized": "my-agency"}

    def test_too_short(self, db):
        result = SubdomainGenerator(db).validate_custom_name("ab")
        assert "must be at least 3 characters" in result["errors"]

    def test_reserved(self, db):
        result = SubdomainGenerator(db).validate_custom_name("admin")
        assert "is reserved and cannot be used" in result["errors"]

    def test_taken_by_website(self, db, website):
        result = SubdomainGenerator(db).validate_custom_name("tenant-a")
        assert result["errors"] == ["is already taken"]

    def test_reserved_by_someone_else(self, db):
        add_subdomain(db, "sunny-bay-42", "reserved", reserved_by_email="first@example.com",
                      reserved_until=datetime.utcnow() + timedelta(minutes=5))
        generator = SubdomainGenerator(db)

        assert generator.validate_custom_name("sunny-bay-42", "second@example.com")["errors"] == ["is not available"]
        assert generator.validate_custom_name("sunny-bay-42", "FIRST@example.com")["valid"] is True


class TestReservation:
    """Test reserving and allocating pooled names."""

    def test_empty_pool(self, db):
        with pytest.raises(SubdomainPoolEmptyError):
            subdomain_pool.reserve_for_email(db, "owner@example.com")

    def test_exhausted_pool(self, db, website):
        add_subdomain(db, "taken-name-10", "allocated", website_id=website.id)
        with pytest.raises(SubdomainPoolExhaustedError):
            subdomain_pool.reserve_for_email(db, "owner@example.com")

    def test_reserve_for_email(self, db):
        add_subdomain(db, "quiet-lake-11")

        subdomain = subdomain_pool.reserve_for_email(db, " Owner@Example.com ")

        assert subdomain.state == "reserved"
        assert subdomain.reserved_by_email == "owner@example.com"
        assert subdomain.reserved_until > datetime.utcnow()

    def test_same_email_reuses_reservation(self, db):
        add_subdomain(db, "quiet-lake-11")
        add_subdomain(db, "misty-cove-12")

        first = subdomain_pool.reserve_for_email(db, "owner@example.com")
        second = subdomain_pool.reserve_for_email(db, "owner@example.com")

        assert first.id == second.id
        assert subdomain_pool.pool_stats(db)["reserved"] == 1

    def test_allocate_by_email(self, db, website):
        add_subdomain(db, "quiet-lake-11")
        subdomain = subdomain_pool.reserve_for_email(db, "owner@example.com")

        assert subdomain_pool.allocate_to_website(db, "owner@example.com", website) is True
        db.refresh(subdomain)
        assert subdomain.state == "allocated"
        assert subdomain.website_id == website.id
        assert subdomain.reserved_by_email is None

    def test_allocate_unknown_name(self, db, website):
        assert subdomain_pool.allocate_to_website(db, "no-such-name", website) is False

    def test_release_expired(self, db):
        add_subdomain(db, "quiet-lake-11", "reserved", reserved_by_email="a@example.com",
                      reserved_until=datetime.utcnow() - timedelta(minutes=1))
        add_subdomain(db, "misty-cove-12", "reserved", reserved_by_email="b@example.com",
                      reserved_until=datetime.utcnow() + timedelta(minutes=5))

        assert subdomain_pool.release_expired(db) == 1

        stats = subdomain_pool.pool_stats(db)
        assert stats["available"] == 1
        assert stats["reserved"] == 1
        assert stats["total"] == 2

    def test_release_clears_owner(self, db, website):
        subdomain = add_subdomain(db, "quiet-lake-11", "allocated", website_id=website.id)

        released = subdomain_pool.release_for_website(db, website)

        assert released.id == subdomain.id
        assert subdomain.state == "released"
        assert subdomain.website_id is None


class TestSubdomainStateMachine:
    def test_cannot_allocate_released(self, db, website):
        subdomain = add_subdomain(db, "quiet-lake-11", "released")
        with pytest.raises(InvalidTransitionError):
            subdomain.allocate(website)

    def test_cannot_reserve_twice(self, db):
        subdomain = add_subdomain(db, "quiet-lake-11")
        subdomain.reserve("a@example.com")
        with pytest.raises(InvalidTransitionError):
            subdomain.reserve("b@example.com")

    def test_pool_name_rules(self, db):
        add_subdomain(db, "quiet-lake-11")
        with pytest.raises(DomainValidationError) as exc:
            subdomain_pool.validate_pool_name(db, Subdomain(name="quiet-lake-11"))
        assert exc.value.errors == {"name": ["has already been taken"]}

        with pytest.raises(DomainValidationError):
            subdomain_pool.validate_pool_name(db, Subdomain(name="www"))
