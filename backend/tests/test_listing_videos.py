"""Tests for listing video requests and pipeline callbacks."""

import pytest

from pwb.core.exceptions import DomainValidationError
from pwb.models import ListingVideo
from pwb.services.listing_videos import ListingVideoService, default_branding, validate_options


@pytest.fixture
def video(db, website, prop):
    return ListingVideoService(db, website).create(prop)


class TestListingVideoService:
    """Test the video record lifecycle."""

    def test_create_with_defaults(self, db, website, agency, admin_user, prop):
        video = ListingVideoService(db, website).create(prop, user=admin_user)

        assert video.status == "pending"
        assert video.reference_number.startswith("VID-")
        assert video.title == "Video for Sea view apartment"
        assert video.format_label == "Vertical (9:16)"
        assert video.branding == {
            "company_name": "Tenant A Realty",
            "agent_name": "Olivia Owner",
            "agent_phone": "+34 600 000 000",
            "agent_email": "office@tenant-a.test",
        }

    def test_branding_without_agency(self, website):
        website.main_logo_url = "https://cdn.example.com/logo.png"

        assert default_branding(website) == {
            "company_name": "Tenant A Realty",
            "logo_url": "https://cdn.example.com/logo.png",
        }

    def test_rejects_unknown_options(self, db, website, prop):
        assert validate_options("portrait", "professional", "robot") == {
            "format": ["is not included in the list"],
            "voice": ["is not included in the list"],
        }

        with pytest.raises(DomainValidationError):
            ListingVideoService(db, website).create(prop, style="gothic")

    def test_complete_keeps_known_fields(self, db, website, video):
        service = ListingVideoService(db, website)
        service.mark_generating(video)
        assert video.status == "generating"

        service.complete(
            video,
            video_url="https://cdn.example.com/v.mp4",
            duration_seconds=75,
            cost_cents=123,
            scenes=[{"duration": 4.5}, {"duration": 3}],
            status="hacked",
        )

        assert video.status == "completed"
        assert video.video_ready is True
        assert video.generated_at is not None
        assert video.duration_formatted == "1:15"
        assert video.cost_formatted == "$1.23"
        assert video.scene_count == 2
        assert video.total_scene_duration == 7.5

    def test_fail(self, db, website, video):
        ListingVideoService(db, website).fail(video, "Voice synthesis timed out")

        assert video.status == "failed"
        assert video.error_message == "Voice synthesis timed out"
        assert video.failed_at is not None
        assert video.video_ready is False

    def test_share_keeps_existing_token(self, db, website, video):
        service = ListingVideoService(db, website)

        token = service.share(video).share_token
        assert service.share(video).share_token == token
        assert service.find_shared(token).id == video.id

    def test_list_filters(self, db, website, make_prop):
        service = ListingVideoService(db, website)
        villa = service.create(make_prop(website, title="Hillside villa", reference="VILLA-7"))
        flat = service.create(make_prop(website, reference="FLAT-2"), video_format="square_1_1")
        service.fail(flat, "boom")

        assert [v.id for v in service.list_videos(status="failed")] == [flat.id]
        assert [v.id for v in service.list_videos(video_format="vertical_9_16")] == [villa.id]
        assert [v.id for v in service.list_videos(search="hillside")] == [villa.id]
        assert len(service.list_videos(status="unknown")) == 2

    def test_scoped_to_website(self, db, website, other_website, make_prop):
        theirs = ListingVideoService(db, other_website).create(make_prop(other_website))

        assert ListingVideoService(db, website).get(theirs.id) is None


class TestListingVideoRoutes:
    """Test the admin and public video endpoints."""

    def test_request_complete_share_and_view(self, admin_client, client, prop):
        created = admin_client.post(
            "/api/site_admin/listing_videos", json={"prop_id": prop.id, "style": "luxury", "format": "square_1_1"}
        )
        assert created.status_code == 201
        video_id = created.json()["id"]
        assert created.json()["aspect_ratio"] == "1:1"

        not_ready = admin_client.post(f"/api/site_admin/listing_videos/{video_id}/share")
        assert not_ready.status_code == 422
        assert not_ready.json()["detail"] == "Video must finish rendering before it can be shared"

        completed = admin_client.post(
            f"/api/site_admin/listing_videos/{video_id}/complete",
            json={"video_url": "https://cdn.example.com/v.mp4", "duration_seconds": 42},
        )
        assert completed.json()["status"] == "completed"
        assert completed.json()["duration_formatted"] == "0:42"

        token = admin_client.post(f"/api/site_admin/listing_videos/{video_id}/share").json()["share_token"]
        viewed = client.get(f"/api/public/listing_videos/{token}")

        assert viewed.status_code == 200
        assert viewed.json()["id"] == video_id

    def test_invalid_options(self, admin_client, prop):
        response = admin_client.post("/api/site_admin/listing_videos", json={"prop_id": prop.id, "voice": "robot"})

        assert response.status_code == 422
        assert response.json()["detail"] == {"voice": ["is not included in the list"]}

    def test_property_of_other_website(self, admin_client, other_website, make_prop):
        foreign = make_prop(other_website)

        response = admin_client.post("/api/site_admin/listing_videos", json={"prop_id": foreign.id})

        assert response.status_code == 404

    def test_fail_callback(self, admin_client, db, video):
        response = admin_client.post(
            f"/api/site_admin/listing_videos/{video.id}/fail", json={"error_message": "Render crashed"}
        )

        assert response.json()["status"] == "failed"

    def test_admin_routes_require_session(self, client, video):
        assert client.get("/api/site_admin/listing_videos").status_code == 401

    def test_unshared_video_is_not_public(self, client, video):
        response = client.get("/api/public/listing_videos/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Video not found"

    def test_list(self, admin_client, video):
        listed = admin_client.get("/api/site_admin/listing_videos", params={"video_status": "pending"}).json()

        assert [v["reference_number"] for v in listed] == [video.reference_number]
