"""Tests for the guess-the-price game."""

from decimal import Decimal

import pytest

from pwb.services.price_game import (
    VISITOR_COOKIE,
    GuessError,
    PriceGame,
    ScoreCalculator,
    parse_price_to_cents,
)


@pytest.fixture
def game_prop(make_prop, website):
    return make_prop(website, game_enabled=True, game_token="play-1")


class TestScoreCalculator:
    """Test scoring brackets and feedback."""

    @pytest.mark.parametrize("estimate,score", [
        (100_000_00, 100),
        (104_000_00, 100),
        (110_000_00, 90),
        (88_000_00, 80),
        (120_000_00, 70),
        (75_000_00, 60),
        (130_000_00, 50),
        (140_000_00, 40),
        (50_000_00, 30),
        (175_000_00, 20),
        (200_000_00, 10),
        (260_000_00, 0),
    ])
    def test_brackets(self, estimate, score):
        assert ScoreCalculator.calculate(estimate, 100_000_00)["score"] == score

    def test_percentage_diff_is_signed_and_rounded(self):
        assert ScoreCalculator.percentage_diff(1, 3) == Decimal("-66.67")

    def test_no_actual_price(self):
        result = ScoreCalculator.calculate(100_00, 0)
        assert result["percentage_diff"] is None
        assert result["score"] == 0

    def test_feedback_bands(self):
        assert ScoreCalculator.feedback(100)[1] == "🎉"
        assert ScoreCalculator.feedback(70)[1] == "👏"
        assert ScoreCalculator.feedback(50)[1] == "👍"
        assert ScoreCalculator.feedback(30)[1] == "🤔"
        assert ScoreCalculator.feedback(20) == ("Keep trying! Property prices can be surprising.", "😅")


@pytest.mark.parametrize("value,cents", [
    ("€250,000", 25_000_000),
    ("1.234,56", 123_456),
    ("1,234.56", 123_456),
    ("99,50", 9_950),
    ("1.500.000", 150_000_000),
    (250000, 25_000_000),
    ("abc", 0),
    ("", None),
    (None, None),
])
def test_parse_price_to_cents(value, cents):
    assert parse_price_to_cents(value) == cents


class TestPriceGame:
    def test_find_requires_enabled_game(self, db, website, game_prop):
        assert PriceGame.find(db, website, "play-1").prop.id == game_prop.id

        game_prop.game_enabled = False
        db.commit()
        assert PriceGame.find(db, website, "play-1") is None

    def test_guess_is_scored_against_asking_price(self, db, game_prop):
        guess = PriceGame(db, game_prop).guess("visitor-1", "240,000")

        assert guess.score == 100
        assert guess.percentage_diff == Decimal("-4.00")
        assert guess.actual_price_cents == 25_000_000
        assert guess.listing_type == "sale"

    def test_one_guess_per_visitor(self, db, game_prop):
        game = PriceGame(db, game_prop)
        first = game.guess("visitor-1", "240000")

        with pytest.raises(GuessError) as excinfo:
            game.guess("visitor-1", "100000")

        assert excinfo.value.code == "already_guessed"
        assert excinfo.value.existing.id == first.id

    def test_invalid_guess(self, db, game_prop):
        with pytest.raises(GuessError, match="invalid_guess"):
            PriceGame(db, game_prop).guess("visitor-1", "0")

    def test_leaderboard_orders_by_score(self, db, game_prop):
        game = PriceGame(db, game_prop)
        game.guess("far", "500000")
        game.guess("close", "250000")
        game.guess("near", "300000")

        assert [g.visitor_token for g in game.leaderboard()] == ["close", "near", "far"]


class TestPriceGameRoutes:
    """Test the public game endpoints."""

    def test_show_game_issues_visitor_cookie(self, client, db, game_prop):
        response = client.get("/api/public/game/play-1")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Guess the price of Sea view apartment"
        assert data["existing_guess"] is None
        assert data["views"] == 1
        assert "price" not in data["property"]
        assert VISITOR_COOKIE in response.cookies

    def test_guess_then_repeat(self, client, game_prop):
        client.get("/api/public/game/play-1")

        first = client.post("/api/public/game/play-1/guess", json={"guessed_price": 262500})
        second = client.post("/api/public/game/play-1/guess", json={"guessed_price": "100000"})

        assert first.json()["result"]["score"] == 100
        assert first.json()["result"]["actual_price"] == "€250,000"
        assert first.json()["leaderboard"][0]["rank"] == 1
        assert second.status_code == 422
        assert second.json()["error"] == "You have already guessed the price of this property"
        assert second.json()["guess"]["score"] == 100

    def test_existing_guess_is_shown_on_return(self, client, game_prop):
        client.post("/api/public/game/play-1/guess", json={"guessed_price": "250000"})

        data = client.get("/api/public/game/play-1").json()

        assert data["existing_guess"]["guessed_price"] == "€250,000"

    def test_invalid_guess(self, client, game_prop):
        response = client.post("/api/public/game/play-1/guess", json={"guessed_price": "free"})

        assert response.status_code == 422
        assert response.json()["error"] == "Please enter a valid price"

    def test_share(self, client, game_prop):
        client.post("/api/public/game/play-1/share")
        assert client.post("/api/public/game/play-1/share").json() == {"success": True, "shares": 2}

    def test_unknown_game(self, client, website):
        assert client.get("/api/public/game/nope").status_code == 404

    def test_game_of_other_website(self, client, website, other_website, make_prop):
        make_prop(other_website, game_enabled=True, game_token="theirs")
        assert client.get("/api/public/game/theirs/leaderboard").status_code == 404
